"""Allow ``python -m incrypt_wallet``."""
from .cli import main

if __name__ == "__main__":
    main()
