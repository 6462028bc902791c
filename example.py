"""Example usage of the typed_populate library."""

import asyncio
import json
from pathlib import Path

from typed_populate import Schema, to_plain_value

# Define a data structure of types using the DSL
types = """
Publisher { name: string }

Author {
    name: string,
    publisher: Publisher,
}

embedded Review { reviewer: User, stars: int }

User {
    first_name: string,
    last_name: string,
    favorite_author: Author,
    blacklist: Author[],
    reviews: Review[],
}
"""

# Create a data directory for storage
data_dir = Path("./example_data")

# Parse the schema and build an in-memory representation
with Schema.parse(types, data_dir) as schema:
    acme = schema.create("Publisher", {"name": "Acme"})
    john = schema.create("Author", {"name": "John Doe", "publisher": acme})
    jane = schema.create("Author", {"name": "Jane Roe", "publisher": acme})

    paul = schema.create(
        "User",
        {"first_name": "Paul", "last_name": "Doe", "favorite_author": john, "blacklist": [jane]},
    )
    mary = schema.create(
        "User",
        {
            "first_name": "Mary",
            "last_name": "Roe",
            "favorite_author": john,
            "reviews": [{"reviewer": paul, "stars": 5}],
        },
    )

    # Both users share John Doe; he is fetched and returned once.
    print("Populating users...")
    result = asyncio.run(schema.populate_all([mary, paul]))
    for type_key, documents in result.items():
        print(f"  {type_key}: {[d.id for d in documents]}")

    print("\nAs JSON:")
    print(json.dumps(to_plain_value(result), indent=2))

# Show files created
print(f"\nFiles created in {data_dir}:")
for f in sorted(data_dir.iterdir()):
    print(f"  {f.name} ({f.stat().st_size} bytes)")

print("\n" + "=" * 60)
print("You can now inspect this data with the dump tool:")
print(f"  typed-populate {data_dir}")
print(f"  typed-populate {data_dir} users")
print(f"  typed-populate {data_dir} users --relationships")
