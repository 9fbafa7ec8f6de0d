"""支持 python -m dotlink"""

from dotlink.cli.main import main

main()
