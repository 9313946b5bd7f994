from core.imports import Blueprint, jsonify, jwt_required, request
from core.errors import status_for_message
from core.extensions import store
from models.productModels import format_money
from routes.marketplace import load_product, product_view
from services.checkoutFlow import PURCHASES_PATH, FlowState

order_bp = Blueprint("orders", __name__)


def flow_view(flow):
    message = flow.take_message()
    view = {
        "state": flow.state.value,
        "form": flow.form.to_payload(),
        "total": flow.display_total,
        "submitting": flow.is_submitting,
        "message": message
    }
    if flow.state is FlowState.SUCCEEDED:
        view["redirect"] = PURCHASES_PATH
        view["redirectAfterMs"] = flow.redirect_in_ms
        view["redirectDue"] = flow.redirect_due()
    return view, status_for_message(message)


def checkout_view(state):
    view, status = flow_view(state.checkout)
    view["items"] = [
        {
            "title": item.product.title,
            "quantity": item.quantity,
            "subtotal": format_money(item.subtotal)
        }
        for item in state.cart.items
    ]
    return view, status


def buy_now_view(flow):
    view, status = flow_view(flow)
    view["product"] = product_view(flow.product)
    view["quantity"] = flow.quantity
    view["quantityChoices"] = flow.quantity_choices
    return view, status


def _form_values(data):
    return {k: v for k, v in data.items() if k != "quantity"}


# -- cart checkout --

@order_bp.route('/api/checkout', methods=['GET'])
@jwt_required()
def get_checkout():
    """
    State of the cart checkout form
    ---
    tags:
      - Checkout
    security:
      - Bearer: []
    responses:
      200:
        description: Flow state, form values, order summary
        schema:
          type: object
          properties:
            state:
              type: string
              enum: [browsing, form_open, submitting, succeeded, failed]
            form:
              type: object
            total:
              type: string
              example: "$30.00"
            redirect:
              type: string
              example: "/purchases"
            redirectAfterMs:
              type: integer
              example: 2000
    """
    view, status = checkout_view(store.current())
    return jsonify(view), status


@order_bp.route('/api/checkout/open', methods=['POST'])
@jwt_required()
def open_checkout():
    """
    Proceed to checkout
    ---
    tags:
      - Checkout
    security:
      - Bearer: []
    responses:
      200:
        description: Checkout form opened (stays closed for an empty cart)
    """
    state = store.current()
    state.checkout.open()
    view, status = checkout_view(state)
    return jsonify(view), status


@order_bp.route('/api/checkout/cancel', methods=['POST'])
@jwt_required()
def cancel_checkout():
    """
    Back to the cart
    ---
    tags:
      - Checkout
    security:
      - Bearer: []
    responses:
      200:
        description: Form closed
    """
    state = store.current()
    state.checkout.cancel()
    view, status = checkout_view(state)
    return jsonify(view), status


@order_bp.route('/api/checkout/form', methods=['PUT'])
@jwt_required()
def update_checkout_form():
    """
    Change checkout form fields
    ---
    tags:
      - Checkout
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
          properties:
            shippingAddress:
              type: object
              properties:
                street:
                  type: string
                city:
                  type: string
                state:
                  type: string
                zipCode:
                  type: string
                country:
                  type: string
            paymentMethod:
              type: string
              enum: [Cash, Card, PayPal, Other]
    responses:
      200:
        description: Form updated
      422:
        description: Unknown field, bad payment method, or form not open
    """
    state = store.current()
    state.checkout.update_form(request.get_json(silent=True) or {})
    view, status = checkout_view(state)
    return jsonify(view), status


@order_bp.route('/api/checkout/submit', methods=['POST'])
@jwt_required()
def submit_checkout():
    """
    Place the order for everything in the cart
    ---
    tags:
      - Checkout
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - name: body
        in: body
        description: Optional last form values, applied before submitting
        schema:
          type: object
    responses:
      200:
        description: Order placed; redirect to purchases after the delay
      422:
        description: Shipping address incomplete
    """
    state = store.current()
    data = request.get_json(silent=True) or {}
    if data:
        state.checkout.update_form(data)
    state.checkout.submit()
    view, status = checkout_view(state)
    return jsonify(view), status


# -- buy now --

def buy_now_flow(product_id, refresh=False):
    state = store.current()
    flow = state.existing_buy_now(product_id)
    if flow is None or refresh:
        flow = state.buy_now(load_product(state, product_id))
    return flow


@order_bp.route('/api/buy-now/<product_id>', methods=['GET'])
@jwt_required()
def get_buy_now(product_id):
    """
    State of the buy-now form for a product
    ---
    tags:
      - Checkout
    security:
      - Bearer: []
    parameters:
      - name: product_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Flow state, product, quantity and total
      404:
        description: Product not found
    """
    view, status = buy_now_view(buy_now_flow(product_id))
    return jsonify(view), status


@order_bp.route('/api/buy-now/<product_id>/open', methods=['POST'])
@jwt_required()
def open_buy_now(product_id):
    """
    Open the buy-now form
    ---
    tags:
      - Checkout
    security:
      - Bearer: []
    parameters:
      - name: product_id
        in: path
        type: string
        required: true
      - name: body
        in: body
        schema:
          type: object
          properties:
            quantity:
              type: integer
              example: 2
    responses:
      200:
        description: Form opened
      403:
        description: Sellers cannot buy their own product
    """
    data = request.get_json(silent=True) or {}
    flow = buy_now_flow(product_id, refresh=True)
    opened = flow.open()
    if opened and "quantity" in data:
        flow.set_quantity(data["quantity"])
    view, status = buy_now_view(flow)
    if not opened and flow.session.owns(flow.product):
        status = 403
    return jsonify(view), status


@order_bp.route('/api/buy-now/<product_id>/cancel', methods=['POST'])
@jwt_required()
def cancel_buy_now(product_id):
    """
    Back to the product
    ---
    tags:
      - Checkout
    security:
      - Bearer: []
    parameters:
      - name: product_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Form closed
    """
    flow = buy_now_flow(product_id)
    flow.cancel()
    view, status = buy_now_view(flow)
    return jsonify(view), status


@order_bp.route('/api/buy-now/<product_id>/form', methods=['PUT'])
@jwt_required()
def update_buy_now_form(product_id):
    """
    Change quantity or shipping/payment fields of the buy-now form
    ---
    tags:
      - Checkout
    security:
      - Bearer: []
    parameters:
      - name: product_id
        in: path
        type: string
        required: true
      - name: body
        in: body
        schema:
          type: object
    responses:
      200:
        description: Form updated
      422:
        description: Quantity out of range or unknown field
    """
    data = request.get_json(silent=True) or {}
    flow = buy_now_flow(product_id)
    if "quantity" in data:
        flow.set_quantity(data["quantity"])
    values = _form_values(data)
    if values:
        flow.update_form(values)
    view, status = buy_now_view(flow)
    return jsonify(view), status


@order_bp.route('/api/buy-now/<product_id>/submit', methods=['POST'])
@jwt_required()
def submit_buy_now(product_id):
    """
    Buy a single product directly
    ---
    tags:
      - Checkout
    security:
      - Bearer: []
    parameters:
      - name: product_id
        in: path
        type: string
        required: true
      - name: body
        in: body
        description: Optional last form values, applied before submitting
        schema:
          type: object
    responses:
      200:
        description: Purchase placed; redirect to purchases after the delay
      422:
        description: Shipping address incomplete
    """
    data = request.get_json(silent=True) or {}
    flow = buy_now_flow(product_id)
    if "quantity" in data:
        flow.set_quantity(data["quantity"])
    values = _form_values(data)
    if values:
        flow.update_form(values)
    flow.submit()
    view, status = buy_now_view(flow)
    return jsonify(view), status
