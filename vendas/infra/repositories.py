# vendas/infra/repositories.py
"""
Repositórios (DAO) para acesso e manipulação de dados no SQLite.

Classes:
- ClienteRepo
- ProdutoRepo   (catálogo: preço efetivo e estoque)
- VendaRepo     (cria/exclui vendas com itens, pagamentos e parcelas)
- ParcelaRepo   (baixa de parcelas e recebíveis)
- LucroRepo     (lucro realizado no mês, fonte do recálculo do dashboard)
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from dataclasses import asdict, is_dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from .db import connect
from vendas.domain.composicao import calcula_totais, gera_parcelas, total_pagamento
from vendas.domain.erros import ErroArmazenamento
from vendas.domain.models import Venda
from vendas.domain.moeda import arredonda
from vendas.domain.precos import preco_efetivo, situacao_promocao, status_pagamento


# -------------------------
# Helpers
# -------------------------

def _as_dict(row: Any) -> Dict[str, Any]:
    if isinstance(row, dict):
        return row
    if is_dataclass(row):
        return asdict(row)
    raise TypeError("row must be dict or dataclass")


def _rows(cur) -> List[Dict[str, Any]]:
    cols = [d[0] for d in cur.description]
    return [dict(zip(cols, row)) for row in cur.fetchall()]


def _dec(v: Any) -> Decimal:
    return Decimal(str(v)) if v is not None else Decimal("0")


# -------------------------
# Cliente
# -------------------------

class ClienteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def add(self, nome: str, telefone: Optional[str] = None, email: Optional[str] = None) -> int:
        with connect(self.db_path) as c:
            cur = c.execute(
                "INSERT INTO cliente (nome, telefone, email) VALUES (?, ?, ?)",
                (nome, telefone, email),
            )
            return cur.lastrowid

    def get_all(self) -> List[Dict[str, Any]]:
        with connect(self.db_path) as c:
            return _rows(c.execute("SELECT id, nome, telefone, email FROM cliente ORDER BY nome"))

    def existe(self, cliente_id: int) -> bool:
        with connect(self.db_path) as c:
            return c.execute("SELECT 1 FROM cliente WHERE id = ?", (cliente_id,)).fetchone() is not None

    def historico(self, cliente_id: int) -> Dict[str, Any]:
        """Histórico de compras e débito do cliente.

        Returns:
            ``{"cliente": {...}, "debito": Decimal, "vendas": [...]}``; cada
            venda traz total, produtos, parcelas pagas/total e valor restante.

        Raises:
            ErroArmazenamento: cliente inexistente.
        """
        with connect(self.db_path) as c:
            clientes = _rows(c.execute(
                "SELECT id, nome, telefone, email FROM cliente WHERE id = ?", (cliente_id,)
            ))
            if not clientes:
                raise ErroArmazenamento(f"cliente {cliente_id} não encontrado")
            vendas = _rows(c.execute(
                """SELECT id AS venda_id, data_venda, total_com_juros AS total
                   FROM venda WHERE cliente_id = ?
                   ORDER BY data_venda DESC, id DESC""",
                (cliente_id,),
            ))
            itens = _rows(c.execute(
                """SELECT vi.venda_id, p.nome, vi.quantidade
                   FROM venda_item vi
                   JOIN venda v ON v.id = vi.venda_id
                   JOIN produto p ON p.id = vi.produto_id
                   WHERE v.cliente_id = ? ORDER BY vi.id""",
                (cliente_id,),
            ))
            parcelas = _rows(c.execute(
                """SELECT vp.venda_id, p.valor, p.pago
                   FROM parcela p
                   JOIN venda_pagamento vp ON vp.id = p.pagamento_id
                   JOIN venda v ON v.id = vp.venda_id
                   WHERE v.cliente_id = ?""",
                (cliente_id,),
            ))

        produtos: Dict[int, List[str]] = defaultdict(list)
        for it in itens:
            nome = it["nome"] if it["quantidade"] == 1 else f"{it['nome']} x{it['quantidade']}"
            produtos[it["venda_id"]].append(nome)
        por_venda: Dict[int, List[Dict[str, Any]]] = defaultdict(list)
        for p in parcelas:
            por_venda[p["venda_id"]].append(p)

        debito = Decimal("0.00")
        for v in vendas:
            ps = por_venda.get(v["venda_id"], [])
            restante = sum((_dec(p["valor"]) for p in ps if not p["pago"]), Decimal("0.00"))
            v["total"] = _dec(v["total"])
            v["produtos"] = produtos.get(v["venda_id"], [])
            v["parcelas_pagas"] = sum(1 for p in ps if p["pago"])
            v["parcelas_total"] = len(ps)
            v["restante"] = restante
            v["status"] = status_pagamento(ps)
            debito += restante
        return {"cliente": clientes[0], "debito": debito, "vendas": vendas}


# -------------------------
# Produto
# -------------------------

class ProdutoRepo:
    _COLS = ("id, nome, preco_original, custo, estoque, preco_atual, preco_promo, "
             "promo_inicio, promo_fim")

    def __init__(self, db_path: str):
        self.db_path = db_path

    def upsert(self, rows: Iterable[Any]) -> List[int]:
        """Insere produtos novos ou atualiza os que já têm ``id``."""
        ids: List[int] = []
        with connect(self.db_path) as c:
            for r in (_as_dict(x) for x in rows):
                payload = {
                    "id": r.get("id"),
                    "nome": r["nome"],
                    "preco_original": str(r["preco_original"]),
                    "custo": str(r.get("custo") or "0"),
                    "estoque": int(r.get("estoque") or 0),
                    "preco_atual": None if r.get("preco_atual") is None else str(r["preco_atual"]),
                    "preco_promo": None if r.get("preco_promo") is None else str(r["preco_promo"]),
                    "promo_inicio": r.get("promo_inicio"),
                    "promo_fim": r.get("promo_fim"),
                }
                cur = c.execute(
                    """
                    INSERT INTO produto
                        (id, nome, preco_original, custo, estoque, preco_atual, preco_promo,
                         promo_inicio, promo_fim)
                    VALUES
                        (:id, :nome, :preco_original, :custo, :estoque, :preco_atual, :preco_promo,
                         :promo_inicio, :promo_fim)
                    ON CONFLICT(id) DO UPDATE SET
                        nome=excluded.nome,
                        preco_original=excluded.preco_original,
                        custo=excluded.custo,
                        estoque=excluded.estoque,
                        preco_atual=excluded.preco_atual,
                        preco_promo=excluded.preco_promo,
                        promo_inicio=excluded.promo_inicio,
                        promo_fim=excluded.promo_fim
                    """,
                    payload,
                )
                ids.append(payload["id"] or cur.lastrowid)
        return ids

    def get_all(self) -> List[Dict[str, Any]]:
        with connect(self.db_path) as c:
            return _rows(c.execute(f"SELECT {self._COLS} FROM produto ORDER BY nome"))

    def get(self, produto_id: int) -> Optional[Dict[str, Any]]:
        with connect(self.db_path) as c:
            rows = _rows(c.execute(f"SELECT {self._COLS} FROM produto WHERE id = ?", (produto_id,)))
            return rows[0] if rows else None

    def busca(self, produto_id: int, hoje: Optional[date] = None) -> Optional[Dict[str, Any]]:
        """Consulta do catálogo usada ao adicionar um item ao carrinho."""
        p = self.get(produto_id)
        if p is None:
            return None
        return {
            "preco_unitario": preco_efetivo(p, hoje),
            "estoque_disponivel": int(p["estoque"] or 0),
        }

    def define_promocao(
        self,
        produto_id: int,
        preco_promo: Optional[Decimal],
        inicio: Optional[date] = None,
        fim: Optional[date] = None,
    ) -> None:
        """Cria, altera ou (com ``preco_promo=None``) encerra a campanha do produto."""
        if inicio is not None and fim is not None and fim < inicio:
            raise ErroArmazenamento("fim da campanha anterior ao início")
        with connect(self.db_path) as c:
            cur = c.execute(
                "UPDATE produto SET preco_promo = ?, promo_inicio = ?, promo_fim = ? WHERE id = ?",
                (None if preco_promo is None else str(preco_promo),
                 None if preco_promo is None else inicio,
                 None if preco_promo is None else fim,
                 produto_id),
            )
            if cur.rowcount == 0:
                raise ErroArmazenamento(f"produto {produto_id} não encontrado")

    def campanhas(self, hoje: Optional[date] = None) -> List[Dict[str, Any]]:
        """Produtos com preço promocional e a situação da campanha em ``hoje``."""
        out = []
        for p in self.get_all():
            situacao = situacao_promocao(p, hoje)
            if situacao is None:
                continue
            out.append({
                "id": p["id"],
                "nome": p["nome"],
                "preco_original": p["preco_original"],
                "preco_promo": p["preco_promo"],
                "promo_inicio": p["promo_inicio"],
                "promo_fim": p["promo_fim"],
                "situacao": situacao,
            })
        return out

    def estoque_baixo(self, limite: int) -> List[Dict[str, Any]]:
        """Produtos com estoque controlado (> 0) até ``limite`` unidades."""
        with connect(self.db_path) as c:
            return _rows(c.execute(
                "SELECT id, nome, estoque FROM produto WHERE estoque > 0 AND estoque <= ? ORDER BY estoque",
                (limite,),
            ))


# -------------------------
# Venda
# -------------------------

class VendaRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def cria(self, venda: Venda) -> Venda:
        """Grava venda, itens, pagamentos e parcelas numa única transação.

        Dá baixa no estoque dos produtos com estoque controlado.

        Raises:
            ErroArmazenamento: produto inexistente ou estoque insuficiente
                no momento da gravação (a transação é desfeita).
        """
        totais = venda.totais or calcula_totais(venda.itens, venda.pagamentos)
        with connect(self.db_path) as c:
            cur = c.execute(
                "INSERT INTO venda (cliente_id, data_venda, subtotal, total_com_juros) VALUES (?, ?, ?, ?)",
                (venda.cliente_id, venda.data, totais.subtotal, totais.total_com_juros),
            )
            venda_id = cur.lastrowid

            for item in venda.itens:
                prod = c.execute("SELECT custo, estoque FROM produto WHERE id = ?",
                                 (item.produto_id,)).fetchone()
                if prod is None:
                    raise ErroArmazenamento(f"produto {item.produto_id} não encontrado")
                estoque = int(prod["estoque"] or 0)
                baixa = estoque > 0
                if baixa:
                    if item.quantidade > estoque:
                        raise ErroArmazenamento(
                            f"estoque insuficiente para o produto {item.produto_id}"
                        )
                    c.execute("UPDATE produto SET estoque = estoque - ? WHERE id = ?",
                              (item.quantidade, item.produto_id))
                c.execute(
                    """INSERT INTO venda_item
                         (venda_id, produto_id, quantidade, preco_unitario, custo_unitario, baixou_estoque)
                       VALUES (?, ?, ?, ?, ?, ?)""",
                    (venda_id, item.produto_id, item.quantidade, item.preco_unitario,
                     prod["custo"] or "0", int(baixa)),
                )

            for pag in venda.pagamentos:
                if not pag.ativo:
                    continue
                cur = c.execute(
                    """INSERT INTO venda_pagamento
                         (venda_id, slot, metodo, valor_base, taxa_juros, parcelas, total)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (venda_id, pag.slot, pag.metodo.value, pag.valor_base, pag.taxa_juros,
                     pag.parcelas, total_pagamento(pag)),
                )
                pagamento_id = cur.lastrowid
                for parc in gera_parcelas(pag, venda.data):
                    c.execute(
                        """INSERT INTO parcela
                             (pagamento_id, numero, valor, vencimento, pago, data_pagamento)
                           VALUES (?, ?, ?, ?, ?, ?)""",
                        (pagamento_id, parc.numero, parc.valor, parc.vencimento,
                         int(parc.pago), parc.data_pagamento),
                    )
        return replace(venda, id=venda_id, totais=totais)

    @staticmethod
    def _exclui(c, venda_id: int) -> None:
        if c.execute("SELECT 1 FROM venda WHERE id = ?", (venda_id,)).fetchone() is None:
            raise ErroArmazenamento(f"venda {venda_id} não encontrada")
        itens = c.execute(
            "SELECT produto_id, quantidade FROM venda_item WHERE venda_id = ? AND baixou_estoque = 1",
            (venda_id,),
        ).fetchall()
        for it in itens:
            c.execute("UPDATE produto SET estoque = estoque + ? WHERE id = ?",
                      (it["quantidade"], it["produto_id"]))
        c.execute("DELETE FROM venda WHERE id = ?", (venda_id,))

    def exclui(self, venda_id: int) -> None:
        """Remove a venda (itens, pagamentos e parcelas em cascata) e devolve o estoque."""
        with connect(self.db_path) as c:
            self._exclui(c, venda_id)

    def exclui_varios(self, venda_ids: Iterable[int]) -> List[int]:
        """Exclusão em lote numa única transação.

        Ids repetidos são considerados uma vez. Se alguma venda não
        existir, nenhuma é excluída.

        Returns:
            Os ids excluídos, na ordem recebida.
        """
        ids = list(dict.fromkeys(venda_ids))
        with connect(self.db_path) as c:
            for venda_id in ids:
                self._exclui(c, venda_id)
        return ids

    def get_all(self) -> List[Dict[str, Any]]:
        """Lista vendas com nome do cliente e status de pagamento."""
        with connect(self.db_path) as c:
            vendas = _rows(c.execute(
                """SELECT v.id, v.data_venda, c.nome AS cliente, v.subtotal, v.total_com_juros
                   FROM venda v JOIN cliente c ON c.id = v.cliente_id
                   ORDER BY v.data_venda DESC, v.id DESC"""
            ))
            parcelas = _rows(c.execute(
                """SELECT vp.venda_id, p.pago
                   FROM parcela p JOIN venda_pagamento vp ON vp.id = p.pagamento_id"""
            ))
        por_venda: Dict[int, List[Dict[str, Any]]] = defaultdict(list)
        for p in parcelas:
            por_venda[p["venda_id"]].append(p)
        for v in vendas:
            v["status"] = status_pagamento(por_venda.get(v["id"], []))
        return vendas


# -------------------------
# Parcelas
# -------------------------

class ParcelaRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def marca_paga(self, parcela_id: int, data_pagamento: Optional[date] = None) -> None:
        """Dá baixa na parcela. Pagar de novo uma parcela já paga não altera nada."""
        quando = data_pagamento or date.today()
        with connect(self.db_path) as c:
            row = c.execute("SELECT pago FROM parcela WHERE id = ?", (parcela_id,)).fetchone()
            if row is None:
                raise ErroArmazenamento(f"parcela {parcela_id} não encontrada")
            if row["pago"]:
                return
            c.execute("UPDATE parcela SET pago = 1, data_pagamento = ? WHERE id = ?",
                      (quando, parcela_id))

    def pendentes(self, hoje: Optional[date] = None) -> List[Dict[str, Any]]:
        """Parcelas em aberto, com a marcação de atraso."""
        ref = (hoje or date.today()).isoformat()
        with connect(self.db_path) as c:
            rows = _rows(c.execute(
                """SELECT p.id, vp.venda_id, c.nome AS cliente, p.numero, vp.parcelas AS de,
                          p.valor, p.vencimento
                   FROM parcela p
                   JOIN venda_pagamento vp ON vp.id = p.pagamento_id
                   JOIN venda v ON v.id = vp.venda_id
                   JOIN cliente c ON c.id = v.cliente_id
                   WHERE p.pago = 0
                   ORDER BY p.vencimento, p.id"""
            ))
        for r in rows:
            r["atrasada"] = r["vencimento"] < ref
        return rows

    def resumo_recebiveis(self, hoje: Optional[date] = None) -> Dict[str, Dict[str, Any]]:
        pend = {"quantidade": 0, "valor": Decimal("0.00")}
        atr = {"quantidade": 0, "valor": Decimal("0.00")}
        for r in self.pendentes(hoje):
            alvo = atr if r["atrasada"] else pend
            alvo["quantidade"] += 1
            alvo["valor"] += _dec(r["valor"])
        return {"pendentes": pend, "atrasadas": atr}


# -------------------------
# Lucro
# -------------------------

class LucroRepo:
    """Lucro realizado: parcelas recebidas no mês, proporcionais à margem da venda.

    Para cada parcela paga no mês, o lucro é
    ``valor_parcela * (total_com_juros - custo) / total_com_juros``.
    Os juros entram integralmente como lucro.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    def lucro_mes(self, ano_mes: Optional[str] = None) -> Decimal:
        ref = ano_mes or date.today().strftime("%Y-%m")
        with connect(self.db_path) as c:
            pagas = _rows(c.execute(
                """SELECT vp.venda_id, p.valor
                   FROM parcela p JOIN venda_pagamento vp ON vp.id = p.pagamento_id
                   WHERE p.pago = 1 AND substr(p.data_pagamento, 1, 7) = ?""",
                (ref,),
            ))
            if not pagas:
                return Decimal("0.00")
            vendas = {r["id"]: r for r in _rows(c.execute(
                "SELECT id, total_com_juros FROM venda"
            ))}
            custos: Dict[int, Decimal] = defaultdict(lambda: Decimal("0"))
            for it in _rows(c.execute("SELECT venda_id, quantidade, custo_unitario FROM venda_item")):
                custos[it["venda_id"]] += _dec(it["custo_unitario"]) * int(it["quantidade"])

        lucro = Decimal("0")
        for p in pagas:
            total = _dec(vendas[p["venda_id"]]["total_com_juros"])
            if total <= 0:
                continue
            margem = (total - custos[p["venda_id"]]) / total
            lucro += _dec(p["valor"]) * margem
        return arredonda(lucro)

    async def busca_lucro_mes_atual(self) -> Dict[str, Any]:
        valor = await asyncio.to_thread(self.lucro_mes)
        return {"valor": valor}
