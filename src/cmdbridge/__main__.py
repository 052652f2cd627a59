from cmdbridge.cli import main

main()
