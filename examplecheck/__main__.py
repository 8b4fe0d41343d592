from examplecheck.cli import main

main()
