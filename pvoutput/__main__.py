import sys

from pvoutput.cli import main

sys.exit(main())
