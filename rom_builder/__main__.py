from rom_builder.cli import main

raise SystemExit(main())
