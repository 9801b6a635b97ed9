from ferzcli.cli import main

main()
