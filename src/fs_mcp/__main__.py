from fs_mcp.server import main

raise SystemExit(main())
