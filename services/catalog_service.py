from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from models.categories import Category
from models.delivery_locations import DeliveryLocation
from models.product_images import ProductImage
from models.products import Product
from schemas.catalog_schemas import (CategoryRequest, DeliveryLocationRequest, ProductRequest,
                                     ProductUpdateRequest)
from services.image_service import ImageService, MAX_IMAGES_PER_UPLOAD
from utils.logger import get_logger
from utils.slug import slugify, random_code

logger = get_logger(__name__)


class CategoryService:

    @staticmethod
    def list_categories(db: Session):
        return db.query(Category).options(selectinload(Category.parent)).order_by(
            Category.created_at.desc(), Category.id.desc()
        )

    @staticmethod
    def get_category(db: Session, category_id: int) -> Category:
        category = db.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise NotFoundError("Category not found")
        return category

    @staticmethod
    def _check_name(db: Session, name: str, exclude_id: Optional[int] = None):
        query = db.query(Category).filter(func.lower(Category.name) == name.lower())
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        if query.first():
            raise ConflictError("The name has already been taken.", field="name")

    @staticmethod
    def _check_parent(db: Session, parent_id: Optional[int], category_id: Optional[int] = None):
        if parent_id is None:
            return
        if category_id is not None and parent_id == category_id:
            raise ValidationFailedError("A category cannot be its own parent", field="parent_id")
        if not db.query(Category).filter(Category.id == parent_id).first():
            raise ValidationFailedError("The selected parent category does not exist", field="parent_id")

    @staticmethod
    def create_category(db: Session, request: CategoryRequest) -> Category:
        CategoryService._check_name(db, request.name)
        CategoryService._check_parent(db, request.parent_id)

        category = Category(name=request.name, parent_id=request.parent_id)
        db.add(category)
        db.commit()
        db.refresh(category)

        logger.info("Category created", extra={"category_id": category.id})
        return category

    @staticmethod
    def update_category(db: Session, category_id: int, request: CategoryRequest) -> Category:
        category = CategoryService.get_category(db, category_id)
        CategoryService._check_name(db, request.name, exclude_id=category_id)
        CategoryService._check_parent(db, request.parent_id, category_id)

        category.name = request.name
        category.parent_id = request.parent_id
        db.commit()
        db.refresh(category)
        return category

    @staticmethod
    def delete_category(db: Session, category_id: int):
        category = CategoryService.get_category(db, category_id)

        if db.query(Category).filter(Category.parent_id == category_id).count() > 0:
            raise ConflictError("Cannot delete category with subcategories.")

        if db.query(Product).filter(Product.category_id == category_id).count() > 0:
            raise ConflictError("Cannot delete category that still has products.")

        db.delete(category)
        db.commit()
        logger.info("Category deleted", extra={"category_id": category_id})


class ProductService:

    def __init__(self, db: Session, images: ImageService):
        self.db = db
        self.images = images

    def _unique_slug(self, name: str, exclude_id: Optional[int] = None) -> str:
        base = slugify(name) or "product"
        slug = base
        counter = 1
        while True:
            query = self.db.query(Product.id).filter(Product.slug == slug)
            if exclude_id is not None:
                query = query.filter(Product.id != exclude_id)
            if not query.first():
                return slug
            slug = f"{base}-{counter}"
            counter += 1

    def _unique_sku(self) -> str:
        while True:
            sku = f"SKU-{random_code(8)}"
            if not self.db.query(Product.id).filter(Product.sku == sku).first():
                return sku

    def list_products(self):
        return self.db.query(Product).options(
            selectinload(Product.category), selectinload(Product.images)
        ).order_by(Product.created_at.desc(), Product.id.desc())

    def get_product(self, product_id: int) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product not found")
        return product

    def _check_category(self, category_id: int):
        if not self.db.query(Category).filter(Category.id == category_id).first():
            raise ValidationFailedError("The selected category does not exist", field="category_id")

    def create_product(self, request: ProductRequest) -> Product:
        self._check_category(request.category_id)

        product = Product(
            category_id=request.category_id,
            name=request.name,
            description=request.description,
            price=request.price,
            stock=request.stock,
            colors=request.colors,
            sizes=request.sizes,
            is_active=request.is_active,
            status=request.status,
            slug=self._unique_slug(request.name),
            sku=self._unique_sku(),
        )
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)

        logger.info("Product created", extra={"product_id": product.id, "sku": product.sku})
        return product

    def update_product(self, product_id: int, request: ProductUpdateRequest) -> Product:
        product = self.get_product(product_id)
        self._check_category(request.category_id)

        if product.name != request.name:
            product.slug = self._unique_slug(request.name, exclude_id=product.id)

        product.category_id = request.category_id
        product.name = request.name
        product.description = request.description
        product.price = request.price
        product.stock = request.stock
        product.colors = request.colors
        product.sizes = request.sizes
        product.is_active = request.is_active
        product.status = request.status

        if request.removed_image_ids:
            self.remove_images(product, request.removed_image_ids, commit=False)

        self.db.commit()
        self.db.refresh(product)
        return product

    def remove_images(self, product: Product, image_ids: Sequence[int], commit: bool = True):
        removed = self.db.query(ProductImage).filter(
            ProductImage.product_id == product.id,
            ProductImage.id.in_(image_ids)
        ).all()
        for image in removed:
            self.images.delete(image.path)
            self.db.delete(image)
        if commit:
            self.db.commit()

    def add_images(self, product_id: int, files: List[Tuple[Optional[str], bytes]]) -> Product:
        product = self.get_product(product_id)

        if len(files) > MAX_IMAGES_PER_UPLOAD:
            raise ValidationFailedError(f"At most {MAX_IMAGES_PER_UPLOAD} images per upload", field="images")

        # decode the whole batch before touching the disk
        loaded = [(filename, self.images.load(filename, data)) for filename, data in files]

        stored = []
        try:
            for filename, image in loaded:
                path = self.images.store(image, filename)
                stored.append(path)
                self.db.add(ProductImage(product_id=product.id, path=path))
            self.db.commit()
        except Exception:
            self.db.rollback()
            for path in stored:
                self.images.delete(path)
            raise

        self.db.refresh(product)
        return product

    def delete_product(self, product_id: int):
        product = self.get_product(product_id)

        if product.items:
            raise ConflictError("Product has been ordered; archive it instead of deleting.")

        for image in product.images:
            self.images.delete(image.path)

        self.db.delete(product)
        self.db.commit()
        logger.info("Product deleted", extra={"product_id": product_id})


class DeliveryLocationService:

    @staticmethod
    def list_locations(db: Session, active_only: bool = False):
        query = db.query(DeliveryLocation)
        if active_only:
            query = query.filter(DeliveryLocation.is_active == True)
        return query.order_by(DeliveryLocation.town).all()

    @staticmethod
    def _check_town(db: Session, town: str, exclude_id: Optional[int] = None):
        query = db.query(DeliveryLocation).filter(func.lower(DeliveryLocation.town) == town.lower())
        if exclude_id is not None:
            query = query.filter(DeliveryLocation.id != exclude_id)
        if query.first():
            raise ConflictError("The town has already been taken.", field="town")

    @staticmethod
    def create_location(db: Session, request: DeliveryLocationRequest) -> DeliveryLocation:
        DeliveryLocationService._check_town(db, request.town)
        location = DeliveryLocation(**request.model_dump())
        db.add(location)
        db.commit()
        db.refresh(location)
        return location

    @staticmethod
    def update_location(db: Session, location_id: int, request: DeliveryLocationRequest) -> DeliveryLocation:
        location = db.query(DeliveryLocation).filter(DeliveryLocation.id == location_id).first()
        if not location:
            raise NotFoundError("Delivery location not found")
        DeliveryLocationService._check_town(db, request.town, exclude_id=location_id)

        for field, value in request.model_dump().items():
            setattr(location, field, value)
        db.commit()
        db.refresh(location)
        return location


class StorefrontService:

    @staticmethod
    def visible_products(db: Session):
        return db.query(Product).filter(
            Product.is_active == True,
            Product.status == "active",
            Product.stock > 0
        )

    @staticmethod
    def storefront(db: Session) -> dict:
        products = StorefrontService.visible_products(db).options(
            selectinload(Product.category), selectinload(Product.images)
        ).order_by(Product.created_at.desc(), Product.id.desc()).all()

        counts = dict(
            StorefrontService.visible_products(db)
            .with_entities(Product.category_id, func.count(Product.id))
            .group_by(Product.category_id)
            .all()
        )
        categories = [
            {
                "id": category.id,
                "name": category.name,
                "parent_id": category.parent_id,
                "products_count": counts.get(category.id, 0),
            }
            for category in db.query(Category).order_by(Category.name).all()
        ]

        return {
            "products": products,
            "categories": categories,
            "locations": DeliveryLocationService.list_locations(db, active_only=True),
        }
