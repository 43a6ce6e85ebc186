from result_filter.cli import main

raise SystemExit(main())
