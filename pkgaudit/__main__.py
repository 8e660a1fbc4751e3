from pkgaudit.cli import main

main()
