from tdfile.cli import main

main()
