"""
Punto de entrada: python -m faro
"""

from faro.cli.app import main

if __name__ == "__main__":
    main()
