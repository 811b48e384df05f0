# almoxarifado/adapters/cli.py
"""
CLI do almoxarifado (Typer).

Comandos principais:
- migrate                       -> aplica migrações
- params set/get/show           -> gerencia parâmetros globais
- item add/list/update/delete   -> cadastro de itens
- item import <xlsx>            -> cadastro em lote a partir de um XLSX
- entrada / saida               -> movimentação de um item (saída por nome usa FIFO)
- lote <xlsx>                   -> movimentação em lote a partir de um XLSX
- estornar <mov_id>             -> devolve ao estoque uma saída
- historico                     -> histórico paginado de movimentações
- solicitacao ...               -> fluxo de solicitações (submit, coordenar, atender, ...)
- alertas / vencimentos         -> estoque baixo e validade próxima
- usuario add                   -> cadastra usuários (nomes exibidos no histórico)
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from almoxarifado.config import DB_PATH, DEFAULTS
from almoxarifado.domain.errors import EstoqueError
from almoxarifado.domain.models import StatusAlerta, Usuario
from almoxarifado.infra.migrations import apply_migrations
from almoxarifado.infra.repositories import SQLiteStore
from almoxarifado.usecases.alertas import calcular_alertas, itens_estoque_baixo, itens_vencendo
from almoxarifado.usecases.alocacao_fifo import alocar_fifo, planejar_alocacao
from almoxarifado.usecases.cadastro_itens import atualizar_item, criar_item, excluir_item
from almoxarifado.usecases.importar_planilhas import run_importar_itens, run_movimentacao_planilha
from almoxarifado.usecases.movimentar_estoque import (
    alterar_quantidade,
    estornar_movimentacao,
    historico_movimentacoes,
)
from almoxarifado.usecases.solicitacoes import (
    atender_solicitacao,
    decidir_coordenacao,
    editar_linhas,
    exige_coordenacao,
    fila_coordenacao,
    fila_estoque,
    rejeitar_solicitacao,
    submeter_solicitacao,
)


app = typer.Typer(help="Almoxarifado escolar: CLI")
console = Console()

DB_OPTION = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")
JSON_OPTION = typer.Option(False, "--json", help="Saída em JSON")
ATOR_OPTION = typer.Option(None, "--ator", help="Id do usuário responsável")

PARAMS = {
    "janela_vencimento_dias": DEFAULTS.janela_vencimento_dias,
    "fator_critico": DEFAULTS.fator_critico,
}


# -----------------------
# util
# -----------------------

def _store(db_path: str) -> SQLiteStore:
    return SQLiteStore(db_path)


def _plain(obj: Any) -> Any:
    """Converte dataclasses/enums/datas em estruturas serializáveis."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return _plain(asdict(obj))
    if isinstance(obj, dict):
        return {k: _plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_plain(v) for v in obj]
    if isinstance(obj, EstoqueError):
        return obj.as_dict()
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    return obj


def _print_json(obj) -> None:
    typer.echo(json.dumps(_plain(obj), ensure_ascii=False, indent=2))


@contextmanager
def _erros():
    """Erros de negócio viram mensagem + exit code 1."""
    try:
        yield
    except EstoqueError as e:
        console.print(f"[bold red]Erro:[/] {e.message}")
        if e.data:
            console.print(f"[dim]{_plain(e.data)}[/dim]")
        raise typer.Exit(code=1)


def _fmt(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, datetime):
        return val.strftime("%d/%m/%Y %H:%M")
    if isinstance(val, date):
        return val.strftime("%d/%m/%Y")
    if isinstance(val, Enum):
        return val.value
    return str(val)


def _display_table(rows: List[Dict[str, Any]], title: str = "Resultado") -> None:
    """Exibe uma lista de dicionários em tabela Rich."""
    if not rows:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return

    table = Table(title=title, box=box.ROUNDED)
    columns = list(rows[0].keys())
    for column in columns:
        if column in ("quantidade", "estoque_minimo", "quantidade_total", "unidades_totais", "id", "item_id"):
            table.add_column(column, justify="right")
        elif column in ("data_validade", "criado_em"):
            table.add_column(column, justify="center")
        else:
            table.add_column(column)

    for row in rows:
        values = []
        for col in columns:
            val = row.get(col)
            if col == "status":
                s = _fmt(val)
                cor = {"critico": "bold red", "baixo": "bold yellow", "ok": "bold green"}.get(s)
                values.append(f"[{cor}]{s}[/]" if cor else s)
            else:
                values.append(_fmt(val))
        table.add_row(*values)
    console.print(table)


def _display_erros(erros: List[Dict[str, Any]]) -> None:
    if not erros:
        return
    erro_table = Table(title="Erros Encontrados")
    erro_table.add_column("Linha/Item")
    erro_table.add_column("Erro")
    for erro in erros:
        ref = erro.get("linha", erro.get("item_id", "?"))
        e = erro.get("erro")
        erro_table.add_row(str(ref), getattr(e, "message", str(e)))
    console.print(erro_table)


def _item_row(it) -> Dict[str, Any]:
    return {
        "id": it.id,
        "nome": it.nome,
        "categoria": it.categoria,
        "marca": it.marca,
        "quantidade": it.quantidade,
        "estoque_minimo": it.estoque_minimo,
        "data_validade": it.data_validade,
        "unidades_por_pacote": it.unidades_por_pacote,
    }


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = DB_OPTION):
    """Aplica migrações."""
    with _erros():
        apply_migrations(db_path)
    typer.echo(f">> Migrações aplicadas em: {db_path}")


params_app = typer.Typer(help="Gerenciar parâmetros globais (vencimentos e alertas).")
app.add_typer(params_app, name="params")


@params_app.command("set")
def cmd_params_set(
    janela_vencimento_dias: Optional[int] = typer.Option(None, help="Ex.: 30"),
    fator_critico: Optional[float] = typer.Option(None, help="Fração do mínimo para status crítico (ex.: 0.5)"),
    db_path: str = DB_OPTION,
):
    """Define parâmetros globais (apenas os informados são alterados)."""
    store = _store(db_path)
    items: List[tuple] = []
    if janela_vencimento_dias is not None:
        items.append(("janela_vencimento_dias", str(janela_vencimento_dias)))
    if fator_critico is not None:
        items.append(("fator_critico", str(fator_critico)))
    if not items:
        typer.echo("Nada a alterar. Informe pelo menos um parâmetro.")
        raise typer.Exit(code=1)
    store.params.set_many(items)
    typer.echo(">> Parâmetros atualizados.")


@params_app.command("get")
def cmd_params_get(
    chave: str = typer.Argument(..., help="Ex.: janela_vencimento_dias | fator_critico"),
    db_path: str = DB_OPTION,
):
    """Mostra um parâmetro específico."""
    val = _store(db_path).params.get(chave)
    typer.echo("(None)" if val is None else val)


@params_app.command("show")
def cmd_params_show(db_path: str = DB_OPTION, as_json: bool = JSON_OPTION):
    """Exibe os parâmetros efetivos (com fallback para defaults)."""
    repo = _store(db_path).params
    out = {k: repo.get(k, str(v)) for k, v in PARAMS.items()}
    if as_json:
        _print_json(out)
        return
    _display_table(
        [{"parametro": k, "valor": v, "padrao": PARAMS[k]} for k, v in out.items()],
        title="Parâmetros do Sistema",
    )
    console.print(f"[dim]Banco de dados: {db_path}[/dim]")


# -----------------------
# itens
# -----------------------

item_app = typer.Typer(help="Cadastro de itens do estoque.")
app.add_typer(item_app, name="item")


@item_app.command("add")
def cmd_item_add(
    nome: str = typer.Option(..., help="Nome do item"),
    categoria: str = typer.Option(..., help=f"Uma de: {', '.join(DEFAULTS.categorias)}"),
    quantidade: int = typer.Option(0, help="Quantidade inicial (entra como movimentação)"),
    estoque_minimo: int = typer.Option(0, "--minimo", help="Estoque mínimo"),
    marca: Optional[str] = typer.Option(None),
    validade: Optional[str] = typer.Option(None, help="YYYY-MM-DD ou DD/MM/AAAA"),
    unidades_por_pacote: Optional[int] = typer.Option(None, help="Unidades por pacote"),
    localizacao: Optional[str] = typer.Option(None, help="Texto legado (ex.: '12 un/cx')"),
    codigo: Optional[str] = typer.Option(None),
    unidade_medida: str = typer.Option("unidade", "--unidade", help=f"Uma de: {', '.join(DEFAULTS.unidades_medida)}"),
    subcategoria: Optional[str] = typer.Option(None),
    ator: Optional[int] = ATOR_OPTION,
    db_path: str = DB_OPTION,
):
    """Cadastra um item."""
    dados: Dict[str, Any] = {
        "nome": nome,
        "categoria": categoria,
        "quantidade": quantidade,
        "estoque_minimo": estoque_minimo,
        "marca": marca,
        "data_validade": validade,
        "codigo": codigo,
        "unidade_medida": unidade_medida,
        "subcategoria": subcategoria,
    }
    if unidades_por_pacote is not None:
        dados["unidades_por_pacote"] = unidades_por_pacote
    elif localizacao is not None:
        dados["localizacao"] = localizacao
    with _erros():
        item = criar_item(_store(db_path), dados, ator_id=ator)
    typer.echo(f">> Item {item.id} cadastrado: {item.nome} ({item.quantidade})")


@item_app.command("list")
def cmd_item_list(
    nome: Optional[str] = typer.Option(None, help="Nome exato"),
    disponiveis: bool = typer.Option(False, "--disponiveis", help="Apenas com quantidade > 0"),
    db_path: str = DB_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Lista os itens cadastrados."""
    with _erros():
        itens = _store(db_path).list_stock_records(nome=nome, somente_disponiveis=disponiveis)
    if as_json:
        _print_json(itens)
        return
    _display_table([_item_row(it) for it in itens], title="Itens")


@item_app.command("update")
def cmd_item_update(
    item_id: int = typer.Argument(...),
    nome: Optional[str] = typer.Option(None),
    categoria: Optional[str] = typer.Option(None),
    quantidade: Optional[int] = typer.Option(None, help="Nova quantidade (gera ajuste de inventário)"),
    estoque_minimo: Optional[int] = typer.Option(None, "--minimo"),
    marca: Optional[str] = typer.Option(None),
    validade: Optional[str] = typer.Option(None),
    unidades_por_pacote: Optional[int] = typer.Option(None),
    codigo: Optional[str] = typer.Option(None),
    unidade_medida: Optional[str] = typer.Option(None, "--unidade"),
    subcategoria: Optional[str] = typer.Option(None),
    ator: Optional[int] = ATOR_OPTION,
    db_path: str = DB_OPTION,
):
    """Atualiza campos de um item (apenas os informados)."""
    informados = {
        "nome": nome,
        "categoria": categoria,
        "quantidade": quantidade,
        "estoque_minimo": estoque_minimo,
        "marca": marca,
        "data_validade": validade,
        "unidades_por_pacote": unidades_por_pacote,
        "codigo": codigo,
        "unidade_medida": unidade_medida,
        "subcategoria": subcategoria,
    }
    parcial = {k: v for k, v in informados.items() if v is not None}
    if not parcial:
        typer.echo("Nada a alterar. Informe pelo menos um campo.")
        raise typer.Exit(code=1)
    with _erros():
        item = atualizar_item(_store(db_path), item_id, parcial, ator_id=ator)
    typer.echo(f">> Item {item.id} atualizado: {item.nome} ({item.quantidade})")


@item_app.command("delete")
def cmd_item_delete(
    item_id: int = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Não pedir confirmação"),
    db_path: str = DB_OPTION,
):
    """Exclui um item (o histórico de movimentações é mantido)."""
    if not yes:
        typer.confirm(f"Excluir o item {item_id}?", abort=True)
    with _erros():
        excluir_item(_store(db_path), item_id)
    typer.echo(f">> Item {item_id} excluído.")


@item_app.command("import")
def cmd_item_import(
    path: str = typer.Argument(..., help="Caminho do XLSX de ITENS"),
    ator: Optional[int] = ATOR_OPTION,
    db_path: str = DB_OPTION,
):
    """Cadastra itens em lote a partir de um XLSX."""
    with _erros():
        info = run_importar_itens(_store(db_path), path, ator_id=ator)
    console.print(Panel(
        f"Itens cadastrados: {len(info['criados'])}\nErros: {len(info['erros'])}",
        title="Importação de Itens",
    ))
    _display_erros(info["erros"])


# -----------------------
# movimentações
# -----------------------

@app.command("entrada")
def cmd_entrada(
    item_id: int = typer.Argument(...),
    quantidade: int = typer.Argument(...),
    motivo: Optional[str] = typer.Option(None),
    obs: Optional[str] = typer.Option(None, "--obs", help="Observações"),
    ator: Optional[int] = ATOR_OPTION,
    db_path: str = DB_OPTION,
):
    """Registra uma entrada em um item."""
    with _erros():
        mov = alterar_quantidade(_store(db_path), item_id, quantidade, "entrada",
                                 motivo=motivo, observacoes=obs, ator_id=ator)
    typer.echo(f">> Entrada {mov.id} registrada: item {item_id} +{mov.quantidade}")


@app.command("saida")
def cmd_saida(
    quantidade: int = typer.Argument(...),
    item_id: Optional[int] = typer.Option(None, "--item", help="Id do item (saída direta)"),
    nome: Optional[str] = typer.Option(None, "--nome", help="Nome do item (saída FIFO por validade)"),
    simular: bool = typer.Option(False, "--simular", help="Apenas mostra o plano FIFO"),
    motivo: Optional[str] = typer.Option(None),
    obs: Optional[str] = typer.Option(None, "--obs", help="Observações"),
    ator: Optional[int] = ATOR_OPTION,
    db_path: str = DB_OPTION,
):
    """Registra uma saída por id (--item) ou por nome com FIFO (--nome)."""
    if (item_id is None) == (nome is None):
        typer.echo("Informe --item ou --nome.")
        raise typer.Exit(code=2)
    store = _store(db_path)

    if item_id is not None:
        with _erros():
            mov = alterar_quantidade(store, item_id, quantidade, "saida",
                                     motivo=motivo, observacoes=obs, ator_id=ator)
        typer.echo(f">> Saída {mov.id} registrada: item {item_id} -{mov.quantidade}")
        return

    if simular:
        plano = planejar_alocacao(store.list_stock_records(nome=nome.strip(), somente_disponiveis=True), quantidade)
        _display_table([{"item_id": i, "quantidade": q} for i, q in plano], title=f"Plano FIFO: {nome}")
        return

    with _erros():
        res = alocar_fifo(store, nome, quantidade, motivo=motivo, observacoes=obs, ator_id=ator)
    _display_table([{"item_id": d.item_id, "quantidade": d.quantidade} for d in res.debitos],
                   title=f"Saída FIFO: {res.nome}")
    if res.aviso:
        console.print(f"[bold yellow]Atendimento parcial:[/] {res.aviso.atendido} de "
                      f"{res.aviso.solicitado} (faltam {res.aviso.falta})")


@app.command("lote")
def cmd_lote(
    path: str = typer.Argument(..., help="Caminho do XLSX de MOVIMENTAÇÕES"),
    tipo: str = typer.Option(..., help="entrada | saida"),
    motivo: Optional[str] = typer.Option(None),
    ator: Optional[int] = ATOR_OPTION,
    db_path: str = DB_OPTION,
):
    """Movimenta em lote a partir de um XLSX."""
    with _erros():
        info = run_movimentacao_planilha(_store(db_path), path, tipo, motivo=motivo, ator_id=ator)
    console.print(Panel(
        f"Movimentações: {len(info['movimentacoes'])}\n"
        f"Saídas FIFO: {len(info['alocacoes'])}\n"
        f"Erros: {len(info['erros'])}",
        title=f"{tipo} em Lote",
    ))
    _display_erros(info["erros"])


@app.command("estornar")
def cmd_estornar(
    movimentacao_id: int = typer.Argument(...),
    ator: Optional[int] = ATOR_OPTION,
    db_path: str = DB_OPTION,
):
    """Estorna uma saída (cria a entrada correspondente)."""
    with _erros():
        mov = estornar_movimentacao(_store(db_path), movimentacao_id, ator_id=ator)
    typer.echo(f">> Estorno {mov.id} registrado: item {mov.item_id} +{mov.quantidade}")


@app.command("historico")
def cmd_historico(
    busca: Optional[str] = typer.Option(None, help="Texto (nome, marca, código, motivo)"),
    tipo: Optional[str] = typer.Option(None, help="entrada | saida"),
    dias: Optional[int] = typer.Option(None, help="Apenas os últimos N dias"),
    pagina: int = typer.Option(1),
    por_pagina: int = typer.Option(20),
    db_path: str = DB_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Histórico de movimentações (mais recentes primeiro)."""
    with _erros():
        res = historico_movimentacoes(_store(db_path), busca=busca, tipo=tipo, periodo_dias=dias,
                                      pagina=pagina, por_pagina=por_pagina)
    if as_json:
        _print_json(res)
        return
    cols = ("id", "criado_em", "tipo", "item_nome", "quantidade", "unidades_totais", "motivo", "ator_nome")
    _display_table([{c: r[c] for c in cols} for r in res["registros"]],
                   title=f"Movimentações (página {res['pagina']}/{res['paginas']}, total {res['total']})")


# -----------------------
# solicitações
# -----------------------

sol_app = typer.Typer(help="Fluxo de solicitações de materiais.")
app.add_typer(sol_app, name="solicitacao")


def _linhas_cli(linhas: Optional[str], itens: Optional[List[str]]) -> Any:
    """--linhas (JSON) ou --item "Nome:qtd" repetido."""
    if linhas:
        return linhas
    out = []
    for raw in itens or []:
        nome, _, qtd = raw.rpartition(":")
        if not nome:
            nome, qtd = qtd, ""
        out.append({"nome": nome, "quantidade": qtd or None})
    return out


def _display_solicitacoes(rows: List[Dict[str, Any]], title: str) -> None:
    _display_table([
        {
            "id": r["solicitacao"].id,
            "criado_em": r["solicitacao"].criado_em,
            "solicitante": r["solicitante_nome"],
            "itens": ", ".join(f"{l.nome} ({l.quantidade})" for l in r["solicitacao"].linhas),
            "observacoes": r["solicitacao"].observacoes,
        }
        for r in rows
    ], title=title)


@sol_app.command("submit")
def cmd_sol_submit(
    solicitante: Optional[int] = typer.Option(None, "--solicitante", help="Id do usuário solicitante"),
    papel: Optional[str] = typer.Option(None, help="professor | coordenacao (padrão: papel do usuário)"),
    linhas: Optional[str] = typer.Option(None, help='JSON, ex.: \'[{"nome": "Lápis", "quantidade": 10}]\''),
    item: Optional[List[str]] = typer.Option(None, "--item", help='"Nome:quantidade" (pode repetir)'),
    obs: Optional[str] = typer.Option(None, "--obs", help="Observações"),
    db_path: str = DB_OPTION,
):
    """Cria uma solicitação."""
    store = _store(db_path)
    if papel is None:
        usuario = store.usuarios.get(solicitante) if solicitante is not None else None
        papel = usuario.papel if usuario else "professor"
    with _erros():
        sol = submeter_solicitacao(store, solicitante, _linhas_cli(linhas, item), observacoes=obs,
                                   exige_coordenacao=exige_coordenacao(papel))
    typer.echo(f">> Solicitação {sol.id} criada ({sol.status_coordenacao.value} na coordenação).")


@sol_app.command("coordenar")
def cmd_sol_coordenar(
    solicitacao_id: int = typer.Argument(...),
    aprovar: bool = typer.Option(True, "--aprovar/--rejeitar"),
    ator: Optional[int] = ATOR_OPTION,
    db_path: str = DB_OPTION,
):
    """Decisão da coordenação."""
    with _erros():
        sol = decidir_coordenacao(_store(db_path), solicitacao_id, aprovar, ator_id=ator)
    typer.echo(f">> Solicitação {sol.id}: coordenação {sol.status_coordenacao.value}.")


@sol_app.command("atender")
def cmd_sol_atender(
    solicitacao_id: int = typer.Argument(...),
    ator: Optional[int] = ATOR_OPTION,
    db_path: str = DB_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Atende a solicitação (baixa FIFO de cada item)."""
    with _erros():
        res = atender_solicitacao(_store(db_path), solicitacao_id, ator_id=ator)
    rows = [
        {
            "item": r.linha.nome,
            "solicitado": r.linha.quantidade,
            "atendido": r.atendido,
            "erro": r.erro.message if isinstance(r.erro, EstoqueError) else r.erro,
        }
        for r in res.linhas
    ]
    if as_json:
        _print_json({"solicitacao_id": res.solicitacao.id, "status": res.solicitacao.status, "linhas": rows})
        return
    _display_table(rows, title=f"Solicitação {res.solicitacao.id} confirmada")
    for aviso in res.avisos:
        console.print(f"[bold yellow]Atendimento parcial:[/] {aviso.nome}: faltam {aviso.falta}")


@sol_app.command("rejeitar")
def cmd_sol_rejeitar(
    solicitacao_id: int = typer.Argument(...),
    ator: Optional[int] = ATOR_OPTION,
    db_path: str = DB_OPTION,
):
    """Rejeita uma solicitação pendente."""
    with _erros():
        sol = rejeitar_solicitacao(_store(db_path), solicitacao_id, ator_id=ator)
    typer.echo(f">> Solicitação {sol.id} rejeitada.")


@sol_app.command("editar")
def cmd_sol_editar(
    solicitacao_id: int = typer.Argument(...),
    linhas: Optional[str] = typer.Option(None, help="JSON com as novas linhas"),
    item: Optional[List[str]] = typer.Option(None, "--item", help='"Nome:quantidade" (pode repetir)'),
    obs: Optional[str] = typer.Option(None, "--obs", help="Observações"),
    db_path: str = DB_OPTION,
):
    """Substitui as linhas de uma solicitação pendente."""
    with _erros():
        sol = editar_linhas(_store(db_path), solicitacao_id, _linhas_cli(linhas, item), observacoes=obs)
    typer.echo(f">> Solicitação {sol.id} editada ({len(sol.linhas)} itens).")


@sol_app.command("fila")
def cmd_sol_fila(
    fila: str = typer.Argument("estoque", help="coordenacao | estoque"),
    db_path: str = DB_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Solicitações aguardando a coordenação ou o estoque."""
    store = _store(db_path)
    if fila.startswith("coord"):
        rows, title = fila_coordenacao(store), "Aguardando coordenação"
    elif fila == "estoque":
        rows, title = fila_estoque(store), "Aguardando estoque"
    else:
        typer.echo("Fila inválida. Use: coordenacao | estoque")
        raise typer.Exit(code=2)
    if as_json:
        _print_json(rows)
        return
    _display_solicitacoes(rows, title)


# -----------------------
# alertas
# -----------------------

@app.command("alertas")
def cmd_alertas(
    todos: bool = typer.Option(False, "--todos", help="Inclui grupos com status ok"),
    db_path: str = DB_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Itens com estoque baixo/crítico (agrupados por nome)."""
    store = _store(db_path)
    fator = store.params.get_float("fator_critico", DEFAULTS.fator_critico)
    itens = store.list_stock_records()
    alertas = calcular_alertas(itens, fator) if todos else itens_estoque_baixo(itens, fator)
    rows = [
        {
            "nome": a.nome_exibicao,
            "categoria": a.categoria,
            "quantidade_total": a.quantidade_total,
            "estoque_minimo": a.estoque_minimo,
            "status": a.status,
            "variantes": len(a.itens),
        }
        for a in alertas
    ]
    if as_json:
        _print_json(rows)
        return
    _display_table(rows, title="Alertas de Estoque")
    criticos = sum(1 for a in alertas if a.status == StatusAlerta.CRITICO)
    if criticos:
        console.print(f"[bold red]{criticos} item(ns) em nível crítico[/]")


@app.command("vencimentos")
def cmd_vencimentos(
    dias: Optional[int] = typer.Option(None, help="Janela em dias (padrão: parâmetro janela_vencimento_dias)"),
    db_path: str = DB_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Itens com validade nos próximos dias."""
    store = _store(db_path)
    janela = dias if dias is not None else store.params.get_int(
        "janela_vencimento_dias", DEFAULTS.janela_vencimento_dias)
    itens = itens_vencendo(store.list_stock_records(), janela)
    if as_json:
        _print_json(itens)
        return
    _display_table([_item_row(it) for it in itens], title=f"Vencendo nos próximos {janela} dias")


# -----------------------
# usuários
# -----------------------

usuario_app = typer.Typer(help="Usuários (nomes exibidos e papel).")
app.add_typer(usuario_app, name="usuario")


@usuario_app.command("add")
def cmd_usuario_add(
    nome: Optional[str] = typer.Option(None),
    email: Optional[str] = typer.Option(None),
    papel: str = typer.Option("professor", help="professor | coordenacao | estoque | compras | admin"),
    db_path: str = DB_OPTION,
):
    """Cadastra um usuário."""
    if not nome and not email:
        typer.echo("Informe --nome ou --email.")
        raise typer.Exit(code=1)
    with _erros():
        u = _store(db_path).insert_user(Usuario(nome=nome, email=email, papel=papel.strip().lower()))
    typer.echo(f">> Usuário {u.id} cadastrado ({u.papel}).")


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
