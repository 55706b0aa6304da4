from customer.models import Customer
from factory import Faker
from factory.django import DjangoModelFactory


class CustomerFactory(DjangoModelFactory):
    class Meta:
        model = Customer

    company_name = Faker("company")
    address = Faker("street_address")
    city = Faker("city")
    phone = Faker("numerify", text="+62##########")
    pbf_license = Faker("bothify", text="PBF-####-??")
    is_active = True
