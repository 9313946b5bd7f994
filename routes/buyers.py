from dataclasses import asdict

from core.imports import Blueprint, jsonify, jwt_required, request
from core.errors import status_for_message
from core.extensions import store
from routes.auth import user_view

buyers_bp = Blueprint("buyers", __name__)


def profile_view(editor):
    message = editor.take_message()
    return {
        "user": user_view(editor.session.user),
        "form": asdict(editor.form),
        "isEditing": editor.is_editing,
        "message": message
    }, status_for_message(message)


@buyers_bp.route('/api/profile', methods=['GET'])
@jwt_required()
def get_profile():
    """
    Profile dashboard of the signed-in user
    ---
    tags:
      - Profile
    security:
      - Bearer: []
    responses:
      200:
        description: Profile and edit-form state
    """
    view, status = profile_view(store.current().profile)
    return jsonify(view), status


@buyers_bp.route('/api/profile/edit', methods=['POST'])
@jwt_required()
def start_profile_edit():
    """
    Switch the profile form to edit mode
    ---
    tags:
      - Profile
    security:
      - Bearer: []
    responses:
      200:
        description: Form is editable
    """
    editor = store.current().profile
    editor.start_edit()
    view, status = profile_view(editor)
    return jsonify(view), status


@buyers_bp.route('/api/profile/cancel', methods=['POST'])
@jwt_required()
def cancel_profile_edit():
    """
    Discard profile edits
    ---
    tags:
      - Profile
    security:
      - Bearer: []
    responses:
      200:
        description: Form reset to the current user
    """
    editor = store.current().profile
    editor.cancel()
    view, status = profile_view(editor)
    return jsonify(view), status


@buyers_bp.route('/api/profile', methods=['PUT'])
@jwt_required()
def save_profile():
    """
    Save the profile form
    ---
    tags:
      - Profile
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - name: body
        in: body
        schema:
          type: object
          properties:
            username:
              type: string
            email:
              type: string
            bio:
              type: string
            location:
              type: string
            phone:
              type: string
            profileImage:
              type: string
    responses:
      200:
        description: Profile updated
      422:
        description: Username empty or email malformed
    """
    editor = store.current().profile
    if not editor.is_editing:
        editor.start_edit()
    editor.update(request.get_json(silent=True) or {})
    editor.save()
    view, status = profile_view(editor)
    return jsonify(view), status
