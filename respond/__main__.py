import sys

from .optimiser import main

sys.exit(main())
