# almoxarifado/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- Os stores (SQLite e memória) devolvem sempre cópias destas dataclasses;
  alterar um objeto retornado não altera o armazenamento.
- Os resultados de alocação/atendimento também são dataclasses, para que a
  camada de apresentação (CLI) receba tudo tipado.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from .policies import normalizar_nome


class TipoMovimentacao(str, Enum):
    ENTRADA = "entrada"
    SAIDA = "saida"


class StatusSolicitacao(str, Enum):
    PENDENTE = "pendente"
    APROVADO = "aprovado"
    REJEITADO = "rejeitado"
    CONFIRMADO = "confirmado"


class StatusCoordenacao(str, Enum):
    PENDENTE = "pendente"
    APROVADO = "aprovado"
    REJEITADO = "rejeitado"


class StatusAlerta(str, Enum):
    OK = "ok"
    BAIXO = "baixo"
    CRITICO = "critico"


@dataclass
class ItemEstoque:
    """Registro físico de estoque (um lote/marca/validade de um item)."""
    nome: str
    categoria: str
    quantidade: int = 0
    estoque_minimo: int = 0
    marca: Optional[str] = None
    data_validade: Optional[date] = None
    unidades_por_pacote: int = 1
    codigo: Optional[str] = None
    unidade_medida: str = "unidade"
    subcategoria: Optional[str] = None
    id: Optional[int] = None
    criado_em: Optional[datetime] = None
    atualizado_em: Optional[datetime] = None

    @property
    def nome_normalizado(self) -> str:
        return normalizar_nome(self.nome)


@dataclass
class Movimentacao:
    """Registro imutável de entrada/saída contra um item."""
    item_id: int
    tipo: TipoMovimentacao
    quantidade: int
    motivo: Optional[str] = None
    observacoes: Optional[str] = None
    ator_id: Optional[int] = None
    estorno_de: Optional[int] = None  # id da saída que esta entrada restaura
    id: Optional[int] = None
    criado_em: Optional[datetime] = None


@dataclass
class LinhaSolicitacao:
    nome: str
    quantidade: int


@dataclass
class Solicitacao:
    """Solicitação de materiais (professor ou coordenação)."""
    solicitante_id: Optional[int]
    linhas: List[LinhaSolicitacao]
    observacoes: Optional[str] = None
    status: StatusSolicitacao = StatusSolicitacao.PENDENTE
    status_coordenacao: StatusCoordenacao = StatusCoordenacao.PENDENTE
    exige_coordenacao: bool = True
    id: Optional[int] = None
    criado_em: Optional[datetime] = None
    confirmado_em: Optional[datetime] = None
    confirmado_por: Optional[int] = None
    aprovado_por: Optional[int] = None
    coordenacao_decidida_em: Optional[datetime] = None
    rejeitado_em: Optional[datetime] = None
    rejeitado_por: Optional[int] = None


@dataclass
class Usuario:
    id: Optional[int] = None
    nome: Optional[str] = None
    email: Optional[str] = None
    papel: str = "professor"


@dataclass
class AlertaEstoque:
    """Visão derivada: itens agrupados pelo nome normalizado."""
    nome_exibicao: str
    categoria: str
    quantidade_total: int
    estoque_minimo: int
    status: StatusAlerta
    itens: List[ItemEstoque] = field(default_factory=list)


@dataclass
class AvisoAtendimentoParcial:
    """Não é exceção: a alocação não conseguiu atender toda a quantidade."""
    nome: str
    solicitado: int
    atendido: int

    @property
    def falta(self) -> int:
        return self.solicitado - self.atendido


@dataclass
class Debito:
    item_id: int
    quantidade: int
    movimentacao: Optional[Movimentacao] = None


@dataclass
class ResultadoAlocacao:
    nome: str
    solicitado: int
    debitos: List[Debito] = field(default_factory=list)
    aviso: Optional[AvisoAtendimentoParcial] = None

    @property
    def atendido(self) -> int:
        return sum(d.quantidade for d in self.debitos)


@dataclass
class ResultadoLinha:
    linha: LinhaSolicitacao
    alocacao: Optional[ResultadoAlocacao] = None
    erro: Optional[Exception] = None

    @property
    def atendido(self) -> int:
        return self.alocacao.atendido if self.alocacao else 0


@dataclass
class ResultadoAtendimento:
    solicitacao: Solicitacao
    linhas: List[ResultadoLinha] = field(default_factory=list)

    @property
    def avisos(self) -> List[AvisoAtendimentoParcial]:
        return [r.alocacao.aviso for r in self.linhas if r.alocacao and r.alocacao.aviso]

    @property
    def erros(self) -> List[ResultadoLinha]:
        return [r for r in self.linhas if r.erro is not None]
