# vendas/adapters/cli.py
"""
CLI do back office de vendas (Typer).

Comandos principais:
- migrate                      -> aplica migrações
- clientes add/list/historico  -> cadastro, compras e débito do cliente
- produtos add/list/importar   -> catálogo (importação via XLSX)
- produtos promocao/campanhas  -> campanhas promocionais com período
- venda registrar/list/excluir -> vendas com um ou dois pagamentos (exclusão em lote)
- parcela pagar/pendentes      -> baixa de parcelas e recebíveis
- lucro                        -> recalcula o lucro realizado no mês
- dashboard                    -> resumo geral
- logs                         -> últimas linhas dos logs
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from vendas.config import DB_PATH
from vendas.domain.erros import ErroArmazenamento, ErroValidacao
from vendas.domain.models import Produto
from vendas.domain.moeda import formata_moeda, parse_moeda
from vendas.domain.precos import em_promocao, margem_lucro, preco_efetivo
from vendas.infra.migrations import apply_migrations
from vendas.infra.repositories import ClienteRepo, LucroRepo, ParcelaRepo, ProdutoRepo, VendaRepo
from vendas.infra.logger import get_log_summary
from vendas.adapters.parsers import parse_item, parse_pagamento
from vendas.usecases.lucro_mensal import AtualizadorLucroMensal
from vendas.usecases.pagar_parcela import run_pagar_parcela
from vendas.usecases.registrar_venda import run_excluir_venda, run_excluir_vendas, run_registrar_venda
from vendas.usecases.relatorios import relatorio_parcelas_pendentes, resumo_dashboard


app = typer.Typer(help="Vendas: back office do ponto de venda")
console = Console()


# -----------------------
# util
# -----------------------

def _fmt(val: Any) -> str:
    if isinstance(val, Decimal):
        return formata_moeda(val)
    if isinstance(val, bool):
        return "sim" if val else "não"
    if val is None:
        return ""
    return str(val)


def _display_table(data: List[Dict[str, Any]], title: str = "Resultado", money: tuple = ()) -> None:
    """Exibe uma lista de registros em tabela Rich.

    Colunas listadas em ``money`` (gravadas como TEXT no banco) são
    formatadas como moeda.
    """
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return
    table = Table(title=title, box=box.ROUNDED)
    columns = list(data[0].keys())
    for column in columns:
        numeric = column in money or column in ("id", "estoque", "quantidade")
        table.add_column(column, justify="right" if numeric else "left")
    for row in data:
        values = []
        for col in columns:
            val = row.get(col)
            if col in money and val is not None:
                val = Decimal(str(val))
            if col == "status":
                cor = {"pago": "green", "parcial": "yellow", "pendente": "red"}.get(str(val), "white")
                values.append(f"[bold {cor}]{val}[/]")
            else:
                values.append(_fmt(val))
        table.add_row(*values)
    console.print(table)


def _com_atualizador(db_path: str, acao: Callable[[Callable], Any]) -> Any:
    """Executa ``acao(notificar)`` e espera o recálculo do lucro mensal."""

    async def _run():
        atualizador = AtualizadorLucroMensal(LucroRepo(db_path))
        atualizador.inscreve(
            lambda r: console.print(f"[green]Lucro do mês atualizado:[/green] {r.formatado}")
        )
        try:
            # escritas no SQLite fora do loop; eventos voltam pelo loop
            resultado = await asyncio.to_thread(acao, atualizador.notificador_threadsafe())
            await atualizador.aguarda()
        finally:
            await atualizador.encerra()
        if atualizador.ultimo_erro is not None:
            console.print(f"[yellow]Lucro do mês não atualizado: {atualizador.ultimo_erro}[/yellow]")
        return resultado

    return asyncio.run(_run())


def _falha(e: Exception) -> None:
    console.print(f"[bold red]Erro:[/bold red] {e}")
    raise typer.Exit(code=1)


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Aplica migrações do banco."""
    apply_migrations(db_path)
    typer.echo(f">> Migrações aplicadas em: {db_path}")


@app.command("logs")
def cmd_logs(
    tipo: str = typer.Argument("transactions", help="transactions | vendas | lucro | database | system"),
    linhas: int = typer.Option(20, help="Número de linhas"),
):
    """Mostra as últimas linhas de um log."""
    typer.echo(get_log_summary(tipo, lines=linhas))


# -----------------------
# clientes
# -----------------------

clientes_app = typer.Typer(help="Cadastro de clientes.")
app.add_typer(clientes_app, name="clientes")


@clientes_app.command("add")
def cmd_clientes_add(
    nome: str = typer.Argument(..., help="Nome do cliente"),
    telefone: Optional[str] = typer.Option(None, help="Telefone"),
    email: Optional[str] = typer.Option(None, help="E-mail"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    apply_migrations(db_path)
    cid = ClienteRepo(db_path).add(nome, telefone, email)
    typer.echo(f">> Cliente {cid} cadastrado.")


@clientes_app.command("list")
def cmd_clientes_list(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    apply_migrations(db_path)
    _display_table(ClienteRepo(db_path).get_all(), title="Clientes")


@clientes_app.command("historico")
def cmd_clientes_historico(
    cliente_id: int = typer.Argument(..., help="ID do cliente"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Compras do cliente, parcelas pagas e débito em aberto."""
    apply_migrations(db_path)
    try:
        h = ClienteRepo(db_path).historico(cliente_id)
    except ErroArmazenamento as e:
        _falha(e)
    console.print(Panel(
        f"Débito em aberto: [bold]{formata_moeda(h['debito'], simbolo=True)}[/]",
        title=f"Cliente {h['cliente']['id']} - {h['cliente']['nome']}",
    ))
    rows = [{
        "venda": v["venda_id"],
        "data": v["data_venda"],
        "produtos": ", ".join(v["produtos"]),
        "total": v["total"],
        "parcelas": f"{v['parcelas_pagas']}/{v['parcelas_total']}",
        "restante": v["restante"],
        "status": v["status"],
    } for v in h["vendas"]]
    _display_table(rows, title="Histórico de Compras", money=("total", "restante"))


# -----------------------
# produtos
# -----------------------

produtos_app = typer.Typer(help="Catálogo de produtos e promoções.")
app.add_typer(produtos_app, name="produtos")

_MONEY_PRODUTO = ("preco", "custo")


@produtos_app.command("add")
def cmd_produtos_add(
    nome: str = typer.Argument(..., help="Nome do produto"),
    preco: str = typer.Option(..., help="Preço de venda (ex.: 49,90)"),
    custo: str = typer.Option("0", help="Preço de custo"),
    estoque: int = typer.Option(0, help="Estoque (0 = sem controle)"),
    promo: Optional[str] = typer.Option(None, help="Preço promocional"),
    promo_inicio: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="Início da promoção"),
    promo_fim: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="Fim da promoção"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    if promo_inicio and promo_fim and promo_fim < promo_inicio:
        raise typer.BadParameter("fim da promoção anterior ao início", param_hint="--promo-fim")
    apply_migrations(db_path)
    produto = Produto(
        nome=nome,
        preco_original=parse_moeda(preco),
        custo=parse_moeda(custo),
        estoque=estoque,
        preco_promo=parse_moeda(promo) if promo else None,
        promo_inicio=promo_inicio.date() if promo and promo_inicio else None,
        promo_fim=promo_fim.date() if promo and promo_fim else None,
    )
    (pid,) = ProdutoRepo(db_path).upsert([produto])
    typer.echo(f">> Produto {pid} cadastrado.")


@produtos_app.command("list")
def cmd_produtos_list(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    apply_migrations(db_path)
    rows = []
    for p in ProdutoRepo(db_path).get_all():
        venda = preco_efetivo(p)
        _, pct = margem_lucro(p["custo"], venda)
        rows.append({"id": p["id"], "nome": p["nome"], "estoque": p["estoque"],
                     "preco": venda, "promo": em_promocao(p), "custo": p["custo"],
                     "margem_%": pct})
    _display_table(rows, title="Produtos", money=_MONEY_PRODUTO)


@produtos_app.command("promocao")
def cmd_produtos_promocao(
    produto_id: int = typer.Argument(..., help="ID do produto"),
    preco: Optional[str] = typer.Option(None, help="Preço promocional (ex.: 39,90)"),
    inicio: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="Início (AAAA-MM-DD)"),
    fim: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="Fim (AAAA-MM-DD)"),
    encerrar: bool = typer.Option(False, "--encerrar", help="Remove a promoção do produto"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cria, altera ou encerra a campanha promocional de um produto."""
    if not encerrar:
        valor = parse_moeda(preco) if preco else Decimal("0")
        if valor <= 0:
            raise typer.BadParameter("informe um preço promocional positivo", param_hint="--preco")
    apply_migrations(db_path)
    try:
        ProdutoRepo(db_path).define_promocao(
            produto_id,
            None if encerrar else valor,
            inicio.date() if inicio else None,
            fim.date() if fim else None,
        )
    except ErroArmazenamento as e:
        _falha(e)
    if encerrar:
        typer.echo(f">> Promoção do produto {produto_id} encerrada.")
    else:
        typer.echo(f">> Promoção do produto {produto_id}: {formata_moeda(valor, simbolo=True)}")


@produtos_app.command("campanhas")
def cmd_produtos_campanhas(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Lista as campanhas promocionais (ativas, agendadas e encerradas)."""
    apply_migrations(db_path)
    rows = [{"id": c["id"], "nome": c["nome"], "original": c["preco_original"],
             "promo": c["preco_promo"], "inicio": c["promo_inicio"], "fim": c["promo_fim"],
             "situacao": c["situacao"]} for c in ProdutoRepo(db_path).campanhas()]
    _display_table(rows, title="Campanhas", money=("original", "promo"))


@produtos_app.command("importar")
def cmd_produtos_importar(
    path: str = typer.Argument(..., help="Caminho do XLSX de produtos"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Importa (ou atualiza) produtos a partir de uma planilha XLSX."""
    from vendas.adapters.catalogo_loader import load_produtos_from_xlsx

    apply_migrations(db_path)
    rows = load_produtos_from_xlsx(path)
    ProdutoRepo(db_path).upsert(rows)
    console.print(Panel(f"Produtos importados: {len(rows)}", title="Importação de Catálogo"))


# -----------------------
# vendas
# -----------------------

venda_app = typer.Typer(help="Registro e exclusão de vendas.")
app.add_typer(venda_app, name="venda")


@venda_app.command("registrar")
def cmd_venda_registrar(
    cliente: int = typer.Option(..., help="ID do cliente"),
    item: List[str] = typer.Option(..., "--item", help="produto[:quantidade]; repita para vários"),
    pagamento: List[str] = typer.Option(
        ..., "--pagamento", help="metodo[:valor[:juros[:parcelas]]]; no máximo dois"
    ),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra uma venda. Valor omitido é preenchido a partir do subtotal."""
    itens = []
    for txt in item:
        parsed = parse_item(txt)
        if parsed is None:
            raise typer.BadParameter(f"item inválido: {txt!r}", param_hint="--item")
        itens.append(parsed)
    if len(pagamento) > 2:
        raise typer.BadParameter("no máximo dois pagamentos", param_hint="--pagamento")
    pagamentos = []
    for slot, txt in enumerate(pagamento, start=1):
        parsed = parse_pagamento(txt, slot=slot)
        if parsed is None:
            raise typer.BadParameter(f"pagamento inválido: {txt!r}", param_hint="--pagamento")
        pagamentos.append(parsed)

    apply_migrations(db_path)
    if not ClienteRepo(db_path).existe(cliente):
        _falha(ErroValidacao(f"Cliente {cliente} não encontrado", campo="cliente"))
    try:
        res = _com_atualizador(db_path, lambda notificar: run_registrar_venda(
            cliente, itens, pagamentos,
            catalogo=ProdutoRepo(db_path),
            repo=VendaRepo(db_path),
            notificar=notificar,
        ))
    except ErroArmazenamento as e:
        _falha(e)

    for aviso in res.avisos:
        console.print(f"[yellow]Aviso:[/yellow] {aviso.mensagem}")
    if res.erros:
        for erro in res.erros:
            console.print(f"[red]- {erro.mensagem}[/red]")
        raise typer.Exit(code=2)

    t = res.totais
    table = Table(title=f"Venda {res.venda.id} Registrada", box=box.ROUNDED)
    table.add_column("Campo")
    table.add_column("Valor", justify="right")
    table.add_row("Subtotal", formata_moeda(t.subtotal, simbolo=True))
    for slot, total in sorted(t.total_por_pagamento.items()):
        table.add_row(f"Pagamento {slot}", formata_moeda(total, simbolo=True))
    table.add_row("Total com juros", formata_moeda(t.total_com_juros, simbolo=True))
    console.print(table)


@venda_app.command("list")
def cmd_venda_list(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    apply_migrations(db_path)
    _display_table(VendaRepo(db_path).get_all(), title="Vendas",
                   money=("subtotal", "total_com_juros"))


@venda_app.command("excluir")
def cmd_venda_excluir(
    venda_ids: List[int] = typer.Argument(..., help="ID(s) da(s) venda(s)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Exclui uma ou várias vendas e devolve o estoque.

    Várias vendas são excluídas numa única transação: se alguma não
    existir, nenhuma é excluída.
    """
    apply_migrations(db_path)
    try:
        if len(venda_ids) == 1:
            _com_atualizador(db_path, lambda notificar: run_excluir_venda(
                venda_ids[0], VendaRepo(db_path), notificar=notificar))
        else:
            _com_atualizador(db_path, lambda notificar: run_excluir_vendas(
                venda_ids, VendaRepo(db_path), notificar=notificar))
    except ErroArmazenamento as e:
        _falha(e)
    if len(venda_ids) == 1:
        typer.echo(f">> Venda {venda_ids[0]} excluída.")
    else:
        typer.echo(f">> Vendas excluídas: {', '.join(str(i) for i in dict.fromkeys(venda_ids))}")


# -----------------------
# parcelas
# -----------------------

parcela_app = typer.Typer(help="Parcelas e recebíveis.")
app.add_typer(parcela_app, name="parcela")


@parcela_app.command("pagar")
def cmd_parcela_pagar(
    parcela_id: int = typer.Argument(..., help="ID da parcela"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    apply_migrations(db_path)
    try:
        _com_atualizador(db_path, lambda notificar: run_pagar_parcela(
            parcela_id, ParcelaRepo(db_path), notificar=notificar))
    except ErroArmazenamento as e:
        _falha(e)
    typer.echo(f">> Parcela {parcela_id} paga.")


@parcela_app.command("pendentes")
def cmd_parcela_pendentes(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    _display_table(relatorio_parcelas_pendentes(db_path), title="Parcelas em Aberto",
                   money=("valor",))


# -----------------------
# lucro e dashboard
# -----------------------

@app.command("lucro")
def cmd_lucro(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Recalcula e mostra o lucro realizado no mês corrente."""
    apply_migrations(db_path)
    atualizador = AtualizadorLucroMensal(LucroRepo(db_path))
    resumo = asyncio.run(atualizador.inicializa())
    if resumo is None:
        _falha(atualizador.ultimo_erro)
    typer.echo(resumo.formatado)


@app.command("dashboard")
def cmd_dashboard(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    d = resumo_dashboard(db_path)
    table = Table(title="Dashboard", box=box.ROUNDED)
    table.add_column("Indicador")
    table.add_column("Valor", justify="right")
    table.add_row("Clientes", str(d["total_clientes"]))
    table.add_row("Produtos", str(d["total_produtos"]))
    table.add_row("Vendas", str(d["total_vendas"]))
    for chave, rotulo in (("parcelas_pendentes", "Parcelas a vencer"),
                          ("parcelas_atrasadas", "Parcelas atrasadas")):
        r = d[chave]
        table.add_row(rotulo, f"{r['quantidade']} ({formata_moeda(r['valor'], simbolo=True)})")
    table.add_row("Produtos com estoque baixo", str(d["produtos_estoque_baixo"]))
    table.add_row("Lucro do mês", f"[bold green]{formata_moeda(d['lucro_mes'], simbolo=True)}[/]")
    console.print(table)


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
