from curriculum_assets.cli import main

raise SystemExit(main())
