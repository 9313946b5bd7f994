from urllib.parse import urlencode

from core.imports import SchemaError, logging
from core.errors import ClientError, ValidationError
from models.productModels import ALL_CATEGORIES, Category, Product

logger = logging.getLogger(__name__)


def normalise_category(category):
    if not category or category == ALL_CATEGORIES:
        return ALL_CATEGORIES
    try:
        return Category(category).value
    except ValueError:
        raise ValidationError(f"Unknown category: {category}") from None


class CatalogBrowser:
    """Product list filtered by free text and category.

    ``(search_term, selected_category)`` is the only query state, and it round
    trips through the ``search``/``category`` URL parameters so a shared link
    shows the same results. Any change to either one re-fetches.
    """

    def __init__(self, client):
        self.client = client
        self.search_term = ""
        self.selected_category = ALL_CATEGORIES
        self.products = []
        self.loaded = False

    @property
    def categories(self):
        return [ALL_CATEGORIES] + [c.value for c in Category]

    def query_args(self):
        params = {}
        if self.selected_category != ALL_CATEGORIES:
            params["category"] = self.selected_category
        if self.search_term:
            params["search"] = self.search_term
        return params

    def query_string(self):
        return urlencode(self.query_args())

    def apply(self, args, force=False):
        category = normalise_category(args.get("category"))
        search = (args.get("search") or "").strip()
        changed = (category, search) != (self.selected_category, self.search_term)
        self.selected_category = category
        self.search_term = search
        if changed or force or not self.loaded:
            self.fetch()
        return self.products

    def set_search(self, term):
        return self.apply({"category": self.selected_category, "search": term})

    def set_category(self, category):
        return self.apply({"category": category, "search": self.search_term})

    def fetch(self):
        self.loaded = True
        try:
            data = self.client.get("/products", params=self.query_args() or None) or {}
            self.products = [Product.model_validate(p) for p in data.get("products", [])]
        except ClientError as e:
            logger.warning("Error fetching products: %s", e.message)
            self.products = []
        except SchemaError as e:
            logger.warning("Malformed product list: %s", e)
            self.products = []
        return self.products

    def product_detail(self, product_id):
        """The product, or None when it cannot be shown (caller goes back to the list)."""
        try:
            return Product.model_validate(self.client.get(f"/products/{product_id}"))
        except ClientError as e:
            logger.warning("Error fetching product %s: %s", product_id, e.message)
        except SchemaError as e:
            logger.warning("Malformed product %s: %s", product_id, e)
        return None
