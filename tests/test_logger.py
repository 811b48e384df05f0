"""
Testes do sistema de logging (arquivos por assunto, ligado/desligado por flag).
"""

import logging

from almoxarifado.infra import logger as log


def _flush(lg: logging.Logger) -> None:
    for h in lg.handlers:
        h.flush()


def test_logging_desligado_por_padrao(monkeypatch):
    monkeypatch.setattr(log, "ENABLE_LOGGING", False)
    monkeypatch.setattr(log, "ENABLE_OUTPUT", False)
    assert log.get_log_summary("transactions") is None
    # nada é gravado
    log.log_transaction("teste", {"a": 1}, result="ok")


def test_setup_logger_grava_em_arquivo(tmp_path):
    arquivo = tmp_path / "sub" / "teste.log"
    lg = log.setup_logger("almoxarifado.teste", str(arquivo))
    assert lg.propagate is False
    assert not arquivo.exists()  # delay=True

    lg.info("mensagem")
    _flush(lg)
    assert "almoxarifado.teste - INFO - mensagem" in arquivo.read_text(encoding="utf-8")


def test_log_solicitacao_nivel_warning(monkeypatch, tmp_path):
    arquivo = tmp_path / "solicitacoes.log"
    monkeypatch.setattr(log, "ENABLE_LOGGING", True)
    monkeypatch.setattr(log, "solicitacao_logger", log.setup_logger("almoxarifado.teste_sol", str(arquivo)))

    log.log_solicitacao("atendimento_parcial", 7, level="warning", nome="Luvas", solicitado=50, atendido=12)
    _flush(log.solicitacao_logger)

    conteudo = arquivo.read_text(encoding="utf-8")
    assert "WARNING" in conteudo
    assert "SOLICITACAO_ATENDIMENTO_PARCIAL" in conteudo
    assert "'solicitacao_id': 7" in conteudo


def test_get_log_summary(monkeypatch, tmp_path):
    arquivo = tmp_path / "transactions.log"
    arquivo.write_text("linha 1\nlinha 2\nlinha 3\n", encoding="utf-8")
    monkeypatch.setattr(log, "ENABLE_LOGGING", True)
    monkeypatch.setitem(log.LOG_FILES, "transactions", arquivo)

    assert log.get_log_summary("transactions", lines=2) == "linha 2\nlinha 3\n"
    assert log.get_log_summary("inexistente") == "Log inexistente não encontrado."


def test_log_transaction_erro(monkeypatch, tmp_path):
    arquivo = tmp_path / "tx.log"
    monkeypatch.setattr(log, "ENABLE_LOGGING", True)
    monkeypatch.setattr(log, "transaction_logger", log.setup_logger("almoxarifado.teste_tx", str(arquivo)))

    log.log_transaction("alterar_quantidade", {"item_id": 1}, error="Quantidade insuficiente em estoque")
    _flush(log.transaction_logger)
    assert "TRANSACTION_FAILED: alterar_quantidade" in arquivo.read_text(encoding="utf-8")


def test_print_system_respeita_flag(monkeypatch, capsys):
    monkeypatch.setattr(log, "ENABLE_OUTPUT", False)
    log.print_system("silencioso")
    monkeypatch.setattr(log, "ENABLE_OUTPUT", True)
    log.print_system("visível")
    assert capsys.readouterr().out == "visível\n"
