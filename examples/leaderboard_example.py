#!/usr/bin/env python3
"""
Leaderboard example for recordlayer.

Walks through the index types on an in-memory database:
- a sum index grouped by region
- a flat vector index with L2 search
- a rank index answering leaderboard queries
- what a conflicting concurrent transaction looks like

Run with: python examples/leaderboard_example.py
"""

import logging
import random

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from recordlayer import (
    Index,
    MemoryDatabase,
    RecordStore,
    RecordType,
    Schema,
    TransactionConflictError,
    VectorMetric,
)
from recordlayer.catalog import field

console = Console()


def print_header(title: str, subtitle: str = ""):
    full_title = f"[bold blue]{title}[/bold blue]"
    if subtitle:
        full_title += f"\n[dim]{subtitle}[/dim]"
    console.print(Panel(full_title, style="bright_blue", box=box.DOUBLE, padding=(1, 2)))


def print_step(step_num: int, title: str):
    console.print(f"\n[bold yellow]Step {step_num}: {title}[/bold yellow]\n")


def print_success(message: str):
    console.print(f"[bold green]✓[/bold green] {message}")


def print_info(message: str):
    console.print(f"[bold cyan]ℹ[/bold cyan] {message}")


def build_schema() -> Schema:
    orders = RecordType("Order", field("order_id"), (
        Index.sum("amount_by_region", ["region"], "amount"),
        Index.count("orders_by_region", ["region"]),
        Index.average("average_by_region", ["region"], "amount"),
    ))
    products = RecordType("Product", field("sku"), (
        Index.vector("product_embedding", "embedding", dimensions=3, metric=VectorMetric.L2),
    ))
    players = RecordType("Player", field("player_id"), (
        Index.rank("score_rank", "score"),
        Index.rank("score_by_league", "score", group_by=["league"]),
    ))
    return Schema([orders, products, players])


def demo_aggregates(db: MemoryDatabase, schema: Schema):
    print_step(1, "Sum, count and average by region")
    with db.create_transaction() as tr:
        store = RecordStore(tr, schema)
        store.save_record("Order", {"order_id": 1, "region": "us", "amount": 10})
        store.save_record("Order", {"order_id": 2, "region": "us", "amount": 5})
        store.save_record("Order", {"order_id": 3, "region": "eu", "amount": 7})

    with db.create_transaction() as tr:
        store = RecordStore(tr, schema)
        table = Table(title="Orders by region", box=box.ROUNDED)
        table.add_column("Region", style="cyan")
        table.add_column("Sum", justify="right")
        table.add_column("Count", justify="right")
        table.add_column("Average", justify="right")
        for region in ("us", "eu"):
            table.add_row(region,
                          str(store.get_sum("amount_by_region", [region])),
                          str(store.get_count("orders_by_region", [region])),
                          f"{store.get_average('average_by_region', [region]):.2f}")
        console.print(table)

    with db.create_transaction() as tr:
        RecordStore(tr, schema).delete_record("Order", 1)

    with db.create_transaction() as tr:
        print_success(f"After deleting order 1, us sum = "
                      f"{RecordStore(tr, schema).get_sum('amount_by_region', ['us'])}")


def demo_vectors(db: MemoryDatabase, schema: Schema):
    print_step(2, "Nearest neighbours with an L2 vector index")
    with db.create_transaction() as tr:
        store = RecordStore(tr, schema)
        store.save_record("Product", {"sku": "A", "embedding": [0.0, 0.0, 0.0]})
        store.save_record("Product", {"sku": "B", "embedding": [1.0, 0.0, 0.0]})
        store.save_record("Product", {"sku": "C", "embedding": [3.0, 0.0, 0.0]})

    with db.create_transaction() as tr:
        results = RecordStore(tr, schema).vector_search("product_embedding", [1.0, 0.0, 0.0], k=2)

    table = Table(title="search((1, 0, 0), k=2)", box=box.ROUNDED)
    table.add_column("SKU", style="cyan")
    table.add_column("Distance", justify="right")
    for primary_key, distance in results:
        table.add_row(str(primary_key[0]), f"{distance:.3f}")
    console.print(table)


def demo_leaderboard(db: MemoryDatabase, schema: Schema):
    print_step(3, "Leaderboard queries on a rank index")
    rng = random.Random(7)
    with db.create_transaction() as tr:
        store = RecordStore(tr, schema, rng=rng)
        for player_id in range(1, 21):
            store.save_record("Player", {
                "player_id": player_id,
                "name": f"player-{player_id:02d}",
                "league": "gold" if player_id % 2 else "silver",
                "score": rng.randint(0, 1000),
            })

    with db.create_transaction() as tr:
        leaderboard = RecordStore(tr, schema).rank_index("score_rank")
        table = Table(title=f"Top 5 of {leaderboard.count()}", box=box.ROUNDED)
        table.add_column("Rank", justify="right")
        table.add_column("Player", style="cyan")
        table.add_column("Score", justify="right")
        for rank, record in enumerate(leaderboard.top(5), start=1):
            table.add_row(str(rank), record["name"], str(record["score"]))
        console.print(table)

        leader = leaderboard.by_rank(1)
        print_info(f"Rank of the leader: "
                   f"{leaderboard.get_rank(leader['score'], leader['player_id'])}")
        gold = RecordStore(tr, schema).rank_index("score_by_league")
        print_info(f"Gold league best score: {gold.score_at_rank(1, grouping=['gold'])}")
        in_range = leaderboard.by_score_range(400, 600)
        print_info(f"{len(in_range)} players scored between 400 and 600")


def demo_conflict(db: MemoryDatabase, schema: Schema):
    print_step(4, "Optimistic conflict detection")
    first = db.create_transaction()
    second = db.create_transaction()
    first.start()
    second.start()

    RecordStore(first, schema).save_record("Player", {
        "player_id": 1, "name": "player-01", "league": "gold", "score": 5000})
    RecordStore(second, schema).save_record("Player", {
        "player_id": 1, "name": "player-01", "league": "gold", "score": 1})

    first.commit()
    print_success("First transaction committed")
    try:
        second.commit()
    except TransactionConflictError as e:
        print_info(f"Second transaction aborted: {e}")


def main():
    logging.basicConfig(level=logging.WARNING,
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")
    print_header("recordlayer", "Secondary indexes on an ordered key-value store")
    db = MemoryDatabase()
    schema = build_schema()
    demo_aggregates(db, schema)
    demo_vectors(db, schema)
    demo_leaderboard(db, schema)
    demo_conflict(db, schema)
    console.print()
    console.print(db.get_statistics())


if __name__ == "__main__":
    main()
