import sys

from gblite.app import main

sys.exit(main())
