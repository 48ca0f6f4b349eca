import sys

from fusion_kbd.cli import main

sys.exit(main())
