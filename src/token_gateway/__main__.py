"""``python -m token_gateway``: same as the ``token-gateway`` console script."""

from token_gateway.main import main

main()
