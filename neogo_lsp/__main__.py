from neogo_lsp.server import main

main()
