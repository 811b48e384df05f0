# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db almoxarifado.db
  python app.py item add --nome "Lápis" --categoria "Material Escolar" --quantidade 50
  python app.py saida 6 --nome "Gaze"
  python app.py solicitacao submit --solicitante 1 --item "Lápis:10"
  python app.py solicitacao fila coordenacao
  python app.py alertas
"""

from almoxarifado.adapters.cli import main

if __name__ == "__main__":
    main()
