from __future__ import annotations

import random
from decimal import Decimal

from django.core.management.base import BaseCommand

from modules.products.dtos import CreateProductDTO
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService

CATALOG = [
    ("Monitor 27\"", Decimal("1299.90")),
    ("Mechanical Keyboard", Decimal("399.90")),
    ("Gaming Mouse", Decimal("249.90")),
    ("Notebook 14\"", Decimal("3999.00")),
    ("Headset", Decimal("299.90")),
    ("Office Desk", Decimal("899.00")),
    ("Ergonomic Chair", Decimal("1499.00")),
    ("Bookshelf", Decimal("699.00")),
    ("A4 Paper", Decimal("29.90")),
    ("Blue Pen", Decimal("4.90")),
    ("Notebook Stand", Decimal("149.90")),
    ("Sticky Notes", Decimal("0.00")),
]


class Command(BaseCommand):
    help = "Seed the database with a sample product catalog."

    def add_arguments(self, parser):
        parser.add_argument(
            "--seed", type=int, default=42, help="Random seed for stock quantities."
        )

    def handle(self, *args, **options):
        rng = random.Random(options["seed"])
        repo = ProductDjangoRepository()
        service = ProductService(repository=repo)

        existing = {p.name for p in repo.find_all()}
        created = 0
        self.stdout.write("Creating products...")
        for name, price in CATALOG:
            if name in existing:
                continue
            service.create_product(
                CreateProductDTO(name=name, price=price, quantity=rng.randint(0, 200))
            )
            created += 1

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed completed: products={created}, skipped={len(CATALOG) - created}"
            )
        )
