from beamoverlap.cli import main

raise SystemExit(main())
