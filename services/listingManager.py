from core.imports import SchemaError, logging
from core.errors import ClientError, NotFoundError, ValidationError
from models.productModels import Product
from services.forms import ListingEditForm, StatusMessage
from services.singleflight import SingleFlight

logger = logging.getLogger(__name__)

DELETE_PROMPT = "Are you sure you want to delete this product?"


class ListingManager:
    """The visitor's own listings: create, inline edit, delete.

    Only products returned by ``/products/user/me`` can be edited or deleted.
    Edits are merged into the local list from the backend's response;
    deletions drop the product locally only once the backend has confirmed.
    """

    def __init__(self, client, flights=None):
        self.client = client
        self.flights = flights or SingleFlight()
        self.products = []
        self.editing_id = None
        self.edit_form = None
        self.message = StatusMessage()

    def take_message(self):
        return self.message.take()

    def is_deleting(self, product_id):
        return self.flights.pending("listing.delete", product_id)

    def fetch_mine(self):
        try:
            data = self.client.get("/products/user/me") or []
            self.products = [Product.model_validate(p) for p in data]
        except (ClientError, SchemaError) as e:
            logger.warning("Error fetching products: %s", e)
            self.message.error("Failed to load products", e)
        return self.products

    def _find(self, product_id):
        for product in self.products:
            if product.id == product_id:
                return product
        raise NotFoundError("Listing not found")

    def start_edit(self, product_id):
        product = self._find(product_id)
        self.editing_id = product.id
        self.edit_form = ListingEditForm.from_product(product)
        return self.edit_form

    def cancel_edit(self):
        self.editing_id = None
        self.edit_form = None

    def update_edit(self, values):
        if self.edit_form is None:
            raise ValidationError("No listing is being edited")
        self.edit_form.update(values)
        return self.edit_form

    def submit_edit(self):
        if self.editing_id is None:
            return False
        product_id = self.editing_id
        try:
            payload = self.edit_form.validate()
        except ValidationError as e:
            self.message.error(e.message, e)
            return False

        with self.flights.hold("listing.update", product_id) as acquired:
            if not acquired:
                return False
            try:
                data = self.client.put(f"/products/{product_id}", json=payload)
            except ClientError as e:
                logger.warning("Error updating product %s: %s", product_id, e.message)
                self.message.error("Failed to update product", e)
                return False
            self._merge(product_id, payload, data if isinstance(data, dict) else {})

        self.cancel_edit()
        self.message.success("Product updated successfully")
        return True

    def _merge(self, product_id, payload, data):
        for index, product in enumerate(self.products):
            if product.id != product_id:
                continue
            merged = {**product.model_dump(by_alias=True), **payload, **data}
            try:
                self.products[index] = Product.model_validate(merged)
            except SchemaError as e:
                logger.warning("Could not merge update for %s: %s", product_id, e)
            return

    def delete(self, product_id, confirm):
        try:
            self._find(product_id)
        except NotFoundError as e:
            self.message.error(e.message, e)
            return False
        if not confirm(DELETE_PROMPT):
            return False

        with self.flights.hold("listing.delete", product_id) as acquired:
            if not acquired:
                return False
            try:
                self.client.delete(f"/products/{product_id}")
            except ClientError as e:
                logger.warning("Error deleting product %s: %s", product_id, e.message)
                self.message.error("Failed to delete product", e)
                return False

        self.products = [p for p in self.products if p.id != product_id]
        if self.editing_id == product_id:
            self.cancel_edit()
        self.message.success("Product deleted successfully")
        return True

    def upload_images(self, files):
        """``files`` are ``(filename, stream, content_type)`` tuples; returns the stored paths."""
        data = self.client.post("/upload/multiple", files=[("images", f) for f in files]) or {}
        return list(data.get("imagePaths", []))

    def create(self, form, files=()):
        try:
            form.validate()
        except ValidationError as e:
            self.message.error(e.message, e)
            return None

        with self.flights.hold("listing.create") as acquired:
            if not acquired:
                return None
            try:
                image_urls = form.image_urls()
                if files:
                    image_urls += self.upload_images(files)
                if not image_urls:
                    raise ValidationError("Please add at least one image")
                data = self.client.post("/products", json=form.to_payload(image_urls))
            except ClientError as e:
                logger.warning("Error creating product: %s", e.message)
                self.message.error(e.describe("Failed to create product"), e)
                return None

        try:
            product = Product.model_validate(data)
        except SchemaError as e:
            logger.warning("Malformed created product: %s", e)
            product = None
        if product is not None:
            self.products.insert(0, product)
        self.message.success("Product created successfully")
        return product
