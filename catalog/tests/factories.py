import factory
from catalog.models import Product
from common.choices import ProductCategory, Unit
from factory import Faker
from factory.django import DjangoModelFactory


class ProductFactory(DjangoModelFactory):
    class Meta:
        model = Product

    product_name = Faker("sentence", nb_words=2)
    product_code = factory.Sequence(lambda n: f"PRD-{n:04d}")
    hsn_code = Faker("numerify", text="2941####")
    category = ProductCategory.API
    unit = Unit.KG
    packaging_type = "drum"
    is_active = True
