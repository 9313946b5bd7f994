from core.imports import Blueprint, jwt_required, jsonify
from core.extensions import store
from models.productModels import format_money
from services.purchaseHistory import status_tone

buyer_orders = Blueprint("buyer_orders", __name__)


def purchase_view(purchase):
    data = purchase.model_dump(mode="json", by_alias=True)
    data["displayTotal"] = format_money(purchase.total_amount)
    data["statusTone"] = status_tone(purchase.status)
    data["date"] = purchase.purchase_date.strftime("%B %d, %Y %H:%M")
    return data


@buyer_orders.route('/api/purchases', methods=['GET'])
@jwt_required()
def get_purchases():
    """
    Purchase history of the signed-in user
    ---
    tags:
      - Purchases
    security:
      - Bearer: []
    responses:
      200:
        description: Purchases as recorded at checkout time
        schema:
          type: object
          properties:
            purchases:
              type: array
              items:
                type: object
                properties:
                  _id:
                    type: string
                  product:
                    type: object
                  quantity:
                    type: integer
                  displayTotal:
                    type: string
                    example: "$50.00"
                  status:
                    type: string
                    example: "Pending"
                  statusTone:
                    type: string
                    example: "warning"
                  date:
                    type: string
                    example: "March 02, 2025 14:05"
            count:
              type: integer
    """
    history = store.current().purchases
    purchases = history.fetch()

    return jsonify({
        "purchases": [purchase_view(p) for p in purchases],
        "count": len(purchases)
    }), 200
