from deckflow.cli import main

main()
