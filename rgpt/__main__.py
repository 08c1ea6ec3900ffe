from rgpt.cli.app import main

main()
