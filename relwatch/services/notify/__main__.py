from relwatch.services.notify.supervisor import main

raise SystemExit(main())
