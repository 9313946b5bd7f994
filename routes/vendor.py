from core.imports import Blueprint, request, jsonify, jwt_required
from core.errors import ValidationError, status_for_message
from core.extensions import store
from routes.marketplace import product_view
from services.forms import ListingForm

vendor_bp = Blueprint('vendor', __name__)

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}


def allowed_file(filename):
    """Checks if a filename has an allowed extension."""
    return '.' in filename and \
           filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def listings_view(manager):
    message = manager.take_message()
    return {
        "products": [
            dict(product_view(p), deleting=manager.is_deleting(p.id), status="Available" if p.is_available else "Sold")
            for p in manager.products
        ],
        "editing": manager.editing_id,
        "editForm": manager.edit_form.to_dict() if manager.edit_form else None,
        "message": message
    }, status_for_message(message)


def _uploaded_files():
    files = []
    for f in request.files.getlist('images'):
        if not f or not f.filename:
            continue
        if not allowed_file(f.filename):
            raise ValidationError("Invalid image format. Allowed types: png, jpg, jpeg, gif, webp.")
        files.append((f.filename, f.stream, f.mimetype))
    return files


def _listing_values():
    if request.is_json:
        return request.get_json(silent=True) or {}
    values = {k: v for k, v in request.form.items() if k != 'images'}
    if 'images' in request.form:
        values['images'] = request.form.getlist('images')
    return values


@vendor_bp.route('/api/listings/mine', methods=['GET'])
@jwt_required()
def my_listings():
    """
    The signed-in user's own products
    ---
    tags:
      - Listings
    security:
      - Bearer: []
    responses:
      200:
        description: Listings, with inline edit state
    """
    manager = store.current().listings
    manager.fetch_mine()
    view, status = listings_view(manager)
    return jsonify(view), status


@vendor_bp.route('/api/listings', methods=['POST'])
@jwt_required()
def create_listing():
    """
    List a new product
    ---
    tags:
      - Listings
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
      - application/json
    parameters:
      - name: title
        in: formData
        type: string
        required: true
      - name: description
        in: formData
        type: string
      - name: category
        in: formData
        type: string
        default: Electronics
      - name: price
        in: formData
        type: number
        required: true
      - name: condition
        in: formData
        type: string
        default: Good
      - name: location
        in: formData
        type: string
      - name: quantity
        in: formData
        type: integer
        default: 1
      - name: images
        in: formData
        type: file
        description: Image files; image URLs may be sent as text fields of the same name
    responses:
      201:
        description: Product created
      422:
        description: Invalid field or no image
    """
    manager = store.current().listings
    form = ListingForm().update(_listing_values())
    product = manager.create(form, files=_uploaded_files())
    view, status = listings_view(manager)
    if product is not None:
        view["product"] = product_view(product)
        status = 201
    return jsonify(view), status


@vendor_bp.route('/api/listings/<product_id>/edit', methods=['POST'])
@jwt_required()
def start_listing_edit(product_id):
    """
    Swap a listing card for its edit form
    ---
    tags:
      - Listings
    security:
      - Bearer: []
    parameters:
      - name: product_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Edit form seeded from the product
      404:
        description: Not one of your listings
    """
    manager = store.current().listings
    if not manager.products:
        manager.fetch_mine()
    manager.start_edit(product_id)
    view, status = listings_view(manager)
    return jsonify(view), status


@vendor_bp.route('/api/listings/<product_id>/edit/cancel', methods=['POST'])
@jwt_required()
def cancel_listing_edit(product_id):
    """
    Close the edit form without saving
    ---
    tags:
      - Listings
    security:
      - Bearer: []
    responses:
      200:
        description: Edit closed
    """
    manager = store.current().listings
    if manager.editing_id == product_id:
        manager.cancel_edit()
    view, status = listings_view(manager)
    return jsonify(view), status


@vendor_bp.route('/api/listings/<product_id>', methods=['PUT'])
@jwt_required()
def update_listing(product_id):
    """
    Save the inline edit of a listing
    ---
    tags:
      - Listings
    security:
      - Bearer: []
    consumes:
      - application/json
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
            title:
              type: string
            description:
              type: string
            category:
              type: string
            price:
              type: number
              minimum: 0
            condition:
              type: string
            location:
              type: string
            quantity:
              type: integer
              minimum: 1
    responses:
      200:
        description: Listing updated
      404:
        description: Not one of your listings
      422:
        description: Negative price, quantity below 1, or other invalid field
    """
    manager = store.current().listings
    if not manager.products:
        manager.fetch_mine()
    if manager.editing_id != product_id:
        manager.start_edit(product_id)
    manager.update_edit(request.get_json(silent=True) or {})
    manager.submit_edit()
    view, status = listings_view(manager)
    return jsonify(view), status


@vendor_bp.route('/api/listings/<product_id>', methods=['DELETE'])
@jwt_required()
def delete_listing(product_id):
    """
    Delete one of your listings
    ---
    tags:
      - Listings
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
            confirm:
              type: boolean
    responses:
      200:
        description: Deleted, or the prompt to show when not confirmed
    """
    data = request.get_json(silent=True) or {}
    asked = []

    def confirm(prompt):
        asked.append(prompt)
        return data.get("confirm") is True

    manager = store.current().listings
    if not manager.products:
        manager.fetch_mine()
    deleted = manager.delete(product_id, confirm)
    view, status = listings_view(manager)
    if not deleted and asked and data.get("confirm") is not True:
        view["confirm"] = asked[0]
    return jsonify(view), status
