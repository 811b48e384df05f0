# almoxarifado/config.py
"""
Configurações globais e valores padrão do almoxarifado.
"""

import os
from dataclasses import dataclass
from typing import Tuple


# Caminho padrão do banco de dados SQLite
DB_PATH = os.environ.get("ALMOXARIFADO_DB") or os.path.join(os.getcwd(), "almoxarifado.db")


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    janela_vencimento_dias: int = 30  # Itens que vencem em até N dias
    fator_critico: float = 0.5        # Crítico quando total <= fator * mínimo
    nome_placeholder: str = "Usuário não identificado"
    categorias: Tuple[str, ...] = (
        "Higiene",
        "Material Escolar",
        "Tecnologia",
        "Alimentação",
        "Limpeza",
        "Medicamentos",
        "Outros",
    )
    unidades_medida: Tuple[str, ...] = ("unidade", "pacote", "metro", "grama")
    # Papéis cujas solicitações passam pela coordenação antes do estoque
    papeis_com_coordenacao: Tuple[str, ...] = ("professor",)


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
