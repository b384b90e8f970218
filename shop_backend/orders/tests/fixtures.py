from decimal import Decimal

from products.models import Product

DHAKA_ADDRESS = {
    "recipient_name": "Rahim Uddin",
    "phone": "01712345678",
    "address_line1": "House 12, Road 5, Dhanmondi",
    "district": "Dhaka",
}

OUTSIDE_ADDRESS = {
    "recipient_name": "Karim Mia",
    "phone": "01812345678",
    "address_line1": "Agrabad C/A",
    "district": "Chattogram",
}


def make_product(name="Classic Tee", price="500.00", discount="10.00", sizes=None, **extra):
    return Product.objects.create(
        name=name,
        price=Decimal(price),
        discount=Decimal(discount),
        sizes=sizes if sizes is not None else ["M", "L", "XXL", "XXL2"],
        **extra,
    )
