from io import BytesIO
from decimal import Decimal

import pytest
from PIL import Image

from core.exceptions import ConflictError, ValidationFailedError
from models.categories import Category
from models.order_items import Item
from models.orders import Order
from models.product_images import ProductImage
from schemas.catalog_schemas import (CategoryRequest, DeliveryLocationRequest, ProductRequest,
                                     ProductUpdateRequest)
from services.catalog_service import CategoryService, DeliveryLocationService, ProductService, StorefrontService
from services.image_service import ImageService


def png_bytes():
    buffer = BytesIO()
    Image.new("RGB", (20, 20)).save(buffer, "PNG")
    return buffer.getvalue()


@pytest.fixture
def products(session, tmp_path):
    return ProductService(session, ImageService(str(tmp_path)))


def product_request(category, name="Air Max 90", **fields):
    data = {"category_id": category.id, "name": name, "description": "Classic", "price": "4500.00",
            "stock": 4, "colors": ["Black", "White"], "sizes": ["41", "42"]}
    data.update(fields)
    return data


def test_delete_category_with_child_fails(session):
    parent = CategoryService.create_category(session, CategoryRequest(name="Shoes"))
    child = CategoryService.create_category(session, CategoryRequest(name="Sneakers", parent_id=parent.id))

    with pytest.raises(ConflictError):
        CategoryService.delete_category(session, parent.id)

    assert session.query(Category).filter(Category.id.in_([parent.id, child.id])).count() == 2


def test_delete_category_with_products_fails(session, category, make_product):
    make_product("Air Max")

    with pytest.raises(ConflictError):
        CategoryService.delete_category(session, category.id)


def test_delete_empty_category(session, category):
    CategoryService.delete_category(session, category.id)
    assert session.query(Category).count() == 0


def test_category_name_unique_and_parent_checked(session, category):
    with pytest.raises(ConflictError):
        CategoryService.create_category(session, CategoryRequest(name="sneakers"))

    with pytest.raises(ValidationFailedError):
        CategoryService.create_category(session, CategoryRequest(name="Boots", parent_id=999))

    with pytest.raises(ValidationFailedError):
        CategoryService.update_category(session, category.id, CategoryRequest(name="Sneakers", parent_id=category.id))


def test_product_slug_and_sku(products, category):
    first = products.create_product(ProductRequest(**product_request(category)))
    second = products.create_product(ProductRequest(**product_request(category)))
    third = products.create_product(ProductRequest(**product_request(category)))

    assert first.slug == "air-max-90"
    assert second.slug == "air-max-90-1"
    assert third.slug == "air-max-90-2"
    assert first.sku.startswith("SKU-") and len(first.sku) == 12
    assert len({first.sku, second.sku, third.sku}) == 3


def test_slug_only_changes_with_name(products, category):
    product = products.create_product(ProductRequest(**product_request(category)))

    updated = products.update_product(product.id, ProductUpdateRequest(**product_request(category, stock=9)))
    assert updated.slug == "air-max-90"
    assert updated.stock == 9

    renamed = products.update_product(product.id, ProductUpdateRequest(**product_request(category, name="Air Force 1")))
    assert renamed.slug == "air-force-1"


def test_add_and_remove_images(session, products, category, tmp_path):
    product = products.create_product(ProductRequest(**product_request(category)))

    product = products.add_images(product.id, [("a.png", png_bytes()), ("b.jpg", png_bytes())])
    assert len(product.images) == 2
    stored = [tmp_path / image.path.split("/")[-1] for image in product.images]
    assert all(path.exists() for path in stored)

    removed_id = product.images[0].id
    products.update_product(product.id, ProductUpdateRequest(
        **product_request(category), removed_image_ids=[removed_id]
    ))

    assert session.query(ProductImage).filter(ProductImage.id == removed_id).first() is None
    assert not stored[0].exists()
    assert stored[1].exists()


def test_bad_file_in_batch_stores_nothing(session, products, category, tmp_path):
    product = products.create_product(ProductRequest(**product_request(category)))

    with pytest.raises(ValidationFailedError):
        products.add_images(product.id, [("a.png", png_bytes()), ("b.png", b"not an image")])

    assert list(tmp_path.glob("*.webp")) == []
    assert session.query(ProductImage).count() == 0


def test_failed_write_removes_stored_files(session, products, category, tmp_path, monkeypatch):
    product = products.create_product(ProductRequest(**product_request(category)))
    store = products.images.store
    calls = []

    def flaky_store(image, original=None):
        calls.append(original)
        if len(calls) == 2:
            raise OSError("disk full")
        return store(image, original)

    monkeypatch.setattr(products.images, "store", flaky_store)

    with pytest.raises(OSError):
        products.add_images(product.id, [("a.png", png_bytes()), ("b.png", png_bytes())])

    assert list(tmp_path.glob("*.webp")) == []
    assert session.query(ProductImage).count() == 0


def test_too_many_images_rejected(products, category):
    product = products.create_product(ProductRequest(**product_request(category)))

    with pytest.raises(ValidationFailedError):
        products.add_images(product.id, [(f"{i}.png", png_bytes()) for i in range(4)])


def test_ordered_product_cannot_be_deleted(session, products, category, make_product):
    product = make_product("Air Max")
    order = Order(uuid="u-1", mpesa_number="254712345678", amount=Decimal("10"), delivery_fee=Decimal("0"),
                  town="Nairobi", description="x")
    session.add(order)
    session.flush()
    session.add(Item(order_id=order.id, product_id=product.id, price=Decimal("10"), quantity=1))
    session.commit()

    with pytest.raises(ConflictError):
        products.delete_product(product.id)


def test_delivery_location_town_unique(session, location):
    with pytest.raises(ConflictError):
        DeliveryLocationService.create_location(session, DeliveryLocationRequest(town="nairobi", delivery_fee=100))


def test_storefront_lists_only_sellable_products(session, category, make_product, location):
    make_product("Visible", stock=3)
    make_product("Sold Out", stock=0)
    make_product("Hidden", stock=3, is_active=False)
    make_product("Draft", stock=3, status="draft")
    session.add(Category(name="Empty"))
    inactive = DeliveryLocationRequest(town="Lamu", delivery_fee=800, is_active=False)
    DeliveryLocationService.create_location(session, inactive)

    data = StorefrontService.storefront(session)

    assert [product.name for product in data["products"]] == ["Visible"]
    counts = {row["name"]: row["products_count"] for row in data["categories"]}
    assert counts == {"Empty": 0, "Sneakers": 1}
    assert [loc.town for loc in data["locations"]] == ["Nairobi"]
