from core.imports import Blueprint, jsonify, request, current_app, create_access_token, jwt_required, get_jwt_identity
from core.extensions import gateway, identity, store
from core.state import ClientState

auth_bp = Blueprint('auth', __name__)


def user_view(user):
    if user is None:
        return None
    return user.model_dump(mode="json", by_alias=True)


def token_lifetime(config):
    """Seconds an access token stays valid, or None when tokens never expire."""
    expires = config.get("JWT_ACCESS_TOKEN_EXPIRES")
    if not expires:
        return None
    if hasattr(expires, "total_seconds"):
        return expires.total_seconds()
    return float(expires)


@auth_bp.route('/api/auth/login', methods=['POST'])
def login():
    """
    Log in against the marketplace backend and start a client session
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - email
            - password
          properties:
            email:
              type: string
              example: "jane@example.com"
            password:
              type: string
              example: "secret"
    responses:
      200:
        description: Logged in
        schema:
          type: object
          properties:
            message:
              type: string
              example: "Login successful"
            access_token:
              type: string
            user:
              type: object
      401:
        description: Invalid credentials
      422:
        description: Email or password missing
    """
    data = request.get_json(silent=True) or {}
    session = identity.login(data.get('email'), data.get('password'))

    state = store.add(
        ClientState(session, gateway, identity, current_app.config),
        lifetime=token_lifetime(current_app.config)
    )
    access_token = create_access_token(
        identity=state.sid,
        additional_claims={"user_id": session.user.id}
    )
    current_app.logger.info("User %s logged in", session.user.id)

    return jsonify({
        "message": "Login successful",
        "access_token": access_token,
        "user": user_view(session.user)
    }), 200


@auth_bp.route('/api/auth/logout', methods=['POST'])
@jwt_required()
def logout():
    """
    End the client session
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
    """
    store.discard(get_jwt_identity())
    return jsonify({"message": "Logged out"}), 200


@auth_bp.route('/api/auth/me', methods=['GET'])
@jwt_required()
def me():
    """
    Current user of this session
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    parameters:
      - name: refresh
        in: query
        type: boolean
        description: Re-read the user from the backend first
    responses:
      200:
        description: The signed-in user
      401:
        description: Session expired
    """
    state = store.current()
    if request.args.get('refresh') in ('1', 'true'):
        identity.refresh(state.session)

    return jsonify({
        "user": user_view(state.session.user),
        "state": state.session.state.value
    }), 200
