"""
Basic usage example for docquery.
"""

from config import load_config
from docquery import (
    FilterBuilder,
    IndexCatalog,
    IndexDescription,
    MemoryStore,
    Projection,
    QueryExecutor,
    SecondaryIndex,
    StreamStore,
)


def main():
    settings = load_config()
    settings.configure_logging()

    print("=" * 60)
    print("docquery Basic Usage Example")
    print("=" * 60)

    # 1. Describe the collection
    print("\n1. Describing the collection...")
    catalog = IndexCatalog(
        IndexDescription("Game", "Player"),
        [
            SecondaryIndex.local("by-score", "Game", "Score"),
            SecondaryIndex.global_("by-player", "Player", "Time"),
            SecondaryIndex.global_("by-time", "Time", projection=Projection.keys_only()),
        ],
    )
    print(f"   {catalog}")

    # 2. Load documents
    print("\n2. Loading documents...")
    store = MemoryStore(catalog, settings.memory_store_config(), settings.planner_config())
    games = ["Zork", "Dune", "Myst"]
    players = ["ann", "bob", "cat", "dan", "eve"]
    store.put_many([
        {
            "Game": games[i % 3],
            "Player": players[i % 5],
            "Score": (i * 37) % 250,
            "Time": f"2024-01-{i + 1:02d}",
            "DocstoreRevision": 1,
        }
        for i in range(15)
    ])
    print(f"   Stored {len(store)} documents")

    executor = settings.query_executor(store)

    # 3. Plans
    print("\n3. Choosing access paths...")
    queries = {
        "scores for one game": FilterBuilder().field("Game").eq("Zork").build(),
        "high scores for one game": (
            FilterBuilder().field("Game").eq("Zork").field("Score").gte(100).build()
        ),
        "one player's games": FilterBuilder().field("Player").eq("ann").build(),
        "every high score": FilterBuilder().field("Score").gt(200).build(),
    }
    for name, query in queries.items():
        print(f"   {name}: {executor.explain(query)}")

    # 4. Run a query lazily
    print("\n4. Iterating...")
    query = queries["high scores for one game"]
    with executor.run_query(query) as it:
        for doc in it:
            print(f"   {doc['Player']}: {doc['Score']}")
        print(f"   Stats: {it.stats.to_dict()}")

    # 5. Selected fields and limits
    print("\n5. Selecting fields...")
    query = (
        FilterBuilder()
        .field("Game").eq("Dune")
        .select("Player", "Score")
        .limit(2)
        .build()
    )
    result = executor.get_all(query)
    for doc in result:
        print(f"   {doc.to_dict()}")
    print(f"   {result.total_time_ms:.2f}ms")

    # 6. Backends with a weaker query language
    print("\n6. Streaming backend...")
    stream = StreamStore()
    stream.add_many([{"name": f"item{i}", "price": i * 3, "stock": 20 - i} for i in range(20)])
    query = FilterBuilder().field("price").gt(10).field("stock").gt(10).build()
    plan = QueryExecutor(stream).plan(query)
    print(plan.explain())
    print(f"   Matches: {len(QueryExecutor(stream).get_all(query))}")

    print("\n" + "=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
