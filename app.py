# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db vendas.db
  python app.py produtos importar catalogo.xlsx
  python app.py venda registrar --cliente 1 --item 3:2 --pagamento pix
  python app.py parcela pendentes
  python app.py dashboard
"""

from vendas.adapters.cli import main

if __name__ == "__main__":
    main()
