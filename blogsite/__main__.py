from .create_blog import main

raise SystemExit(main())
