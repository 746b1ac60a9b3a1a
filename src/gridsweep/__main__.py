import sys

from gridsweep.cli import main

sys.exit(main())
