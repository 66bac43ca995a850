import sys

from sourcewatch import cli

sys.exit(cli.main())
