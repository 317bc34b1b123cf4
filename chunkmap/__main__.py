import sys

from chunkmap.cli import main

sys.exit(main())
