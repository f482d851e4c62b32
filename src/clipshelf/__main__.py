from clipshelf.main import main

main()
