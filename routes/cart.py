from core.imports import Blueprint, jsonify, jwt_required, request
from core.errors import ValidationError, status_for_message
from core.extensions import store
from models.productModels import format_money
from routes.marketplace import product_view

cart_bp = Blueprint("cart", __name__)


def cart_view(cart):
    items = []
    for item in cart.items:
        updating = cart.is_updating(item.product.id)
        items.append({
            "product": product_view(item.product),
            "quantity": item.quantity,
            "subtotal": format_money(item.subtotal),
            "updating": updating,
            "canDecrement": item.quantity > 1 and not updating,
            "canIncrement": not updating
        })

    message = cart.take_message()
    return {
        "items": items,
        "itemCount": len(items),
        "totalAmount": str(cart.total_amount),
        "displayTotal": cart.display_total,
        "isEmpty": cart.is_empty,
        "message": message
    }, status_for_message(message)


def loaded_cart():
    cart = store.current().cart
    if cart.snapshot is None:
        cart.fetch()
    return cart


def _product_id(data):
    product_id = data.get("productId")
    if not product_id:
        raise ValidationError("productId is required")
    return str(product_id)


def _quantity(data, default=None):
    quantity = data.get("quantity", default)
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("Quantity must be a whole number")
    return quantity


@cart_bp.route('/api/cart', methods=['GET'])
@jwt_required()
def get_cart():
    """
    Get the current user's shopping cart
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    responses:
      200:
        description: Cart retrieved successfully
        schema:
          type: object
          properties:
            items:
              type: array
              items:
                type: object
                properties:
                  product:
                    type: object
                  quantity:
                    type: integer
                    example: 3
                  subtotal:
                    type: string
                    example: "$30.00"
                  updating:
                    type: boolean
                  canDecrement:
                    type: boolean
            itemCount:
              type: integer
            totalAmount:
              type: string
              example: "30.00"
            displayTotal:
              type: string
              example: "$30.00"
            isEmpty:
              type: boolean
            message:
              type: object
      401:
        description: Session expired
    """
    cart = store.current().cart
    cart.fetch()
    view, status = cart_view(cart)
    return jsonify(view), status


@cart_bp.route('/api/cart/add', methods=['POST'])
@jwt_required()
def add_to_cart():
    """
    Add a product to the cart
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - productId
          properties:
            productId:
              type: string
              example: "64f1c2"
            quantity:
              type: integer
              example: 2
    responses:
      200:
        description: Product added, cart re-fetched
      404:
        description: Product not found
      409:
        description: Product is not available
      422:
        description: Invalid quantity
    """
    data = request.get_json(silent=True) or {}
    cart = store.current().cart
    cart.add_to_cart(_product_id(data), data.get("quantity", 1))
    view, status = cart_view(cart)
    return jsonify(view), status


@cart_bp.route('/api/cart/update', methods=['PUT'])
@jwt_required()
def update_cart_item():
    """
    Set the quantity of a cart item
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - productId
            - quantity
          properties:
            productId:
              type: string
            quantity:
              type: integer
              example: 4
    responses:
      200:
        description: Quantity updated (quantities below 1 are ignored)
      404:
        description: Item is not in the cart
    """
    data = request.get_json(silent=True) or {}
    cart = loaded_cart()
    cart.update_quantity(_product_id(data), _quantity(data))
    view, status = cart_view(cart)
    return jsonify(view), status


@cart_bp.route('/api/cart/<product_id>/increment', methods=['POST'])
@jwt_required()
def increment_cart_item(product_id):
    """
    Add one to a cart item
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    parameters:
      - name: product_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Quantity increased
    """
    cart = loaded_cart()
    cart.increment(product_id)
    view, status = cart_view(cart)
    return jsonify(view), status


@cart_bp.route('/api/cart/<product_id>/decrement', methods=['POST'])
@jwt_required()
def decrement_cart_item(product_id):
    """
    Take one off a cart item; does nothing at quantity 1
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    parameters:
      - name: product_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Quantity decreased, or unchanged at 1
    """
    cart = loaded_cart()
    cart.decrement(product_id)
    view, status = cart_view(cart)
    return jsonify(view), status


@cart_bp.route('/api/cart/remove', methods=['DELETE'])
@jwt_required()
def remove_cart_item():
    """
    Remove a product from the cart
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            productId:
              type: string
    responses:
      200:
        description: Item removed
    """
    data = request.get_json(silent=True) or {}
    cart = loaded_cart()
    cart.remove_item(_product_id(data))
    view, status = cart_view(cart)
    return jsonify(view), status


@cart_bp.route('/api/cart/clear', methods=['DELETE'])
@jwt_required()
def clear_cart():
    """
    Clear all items from the cart
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    parameters:
      - name: body
        in: body
        schema:
          type: object
          properties:
            confirm:
              type: boolean
              description: The visitor's answer to the confirmation prompt
    responses:
      200:
        description: Cart cleared, or the prompt to show when not confirmed
    """
    data = request.get_json(silent=True) or {}
    asked = []

    def confirm(prompt):
        asked.append(prompt)
        return data.get("confirm") is True

    cart = loaded_cart()
    cleared = cart.clear_cart(confirm)
    view, status = cart_view(cart)
    if not cleared and asked and data.get("confirm") is not True:
        view["confirm"] = asked[0]
    return jsonify(view), status
