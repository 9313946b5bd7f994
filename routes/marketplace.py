from core.imports import Blueprint, jsonify, request, jwt_required
from core.errors import NotFoundError
from core.extensions import gateway, store
from core.session import Session
from models.productModels import format_money
from services.catalogBrowser import CatalogBrowser

marketplace_bp = Blueprint('marketplace', __name__)

PRODUCTS_PATH = "/products"


def product_view(product):
    data = product.model_dump(mode="json", by_alias=True)
    data["displayPrice"] = format_money(product.price)
    return data


def browser_for_request():
    """The visitor's own browser when signed in, a throwaway anonymous one otherwise."""
    state = store.current(optional=True)
    if state is not None:
        return state, state.catalog
    return None, CatalogBrowser(gateway.bind(Session()))


@marketplace_bp.route('/api/products', methods=['GET'])
@jwt_required(optional=True)
def list_products():
    """
    Browse products by search text and category
    ---
    tags:
      - Marketplace
    parameters:
      - name: search
        in: query
        type: string
        required: false
      - name: category
        in: query
        type: string
        required: false
        description: One of the ten categories, or "All"
    responses:
      200:
        description: Filtered products
        schema:
          type: object
          properties:
            products:
              type: array
              items:
                type: object
            count:
              type: integer
            search:
              type: string
            category:
              type: string
              example: "All"
            categories:
              type: array
              items:
                type: string
            query:
              type: string
              example: "category=Books&search=novel"
      422:
        description: Unknown category
    """
    _, browser = browser_for_request()
    products = browser.apply(request.args, force=True)

    return jsonify({
        "products": [product_view(p) for p in products],
        "count": len(products),
        "search": browser.search_term,
        "category": browser.selected_category,
        "categories": browser.categories,
        "query": browser.query_string()
    }), 200


@marketplace_bp.route('/api/products/<product_id>', methods=['GET'])
@jwt_required(optional=True)
def product_details(product_id):
    """
    Get details of a specific product by ID
    ---
    tags:
      - Marketplace
    parameters:
      - name: product_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Product details, with whether the visitor may buy it
      404:
        description: Product could not be loaded; go back to the product list
    """
    state, browser = browser_for_request()
    product = browser.product_detail(product_id)

    if product is None:
        return jsonify({"message": "Product not found", "redirect": PRODUCTS_PATH}), 404

    is_owner = state is not None and state.session.owns(product)
    data = product_view(product)
    data["isOwner"] = is_owner
    data["canPurchase"] = state is not None and not is_owner
    data["quantityChoices"] = list(range(1, state.buy_now_max_quantity + 1)) if state else []

    return jsonify(data), 200


def load_product(state, product_id):
    product = state.catalog.product_detail(product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product
