from mageapi.app import main

main()
