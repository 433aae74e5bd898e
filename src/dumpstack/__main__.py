from dumpstack.cli import main

main()
