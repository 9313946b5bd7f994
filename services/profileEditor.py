from core.imports import logging
from core.errors import ClientError, ValidationError
from services.forms import ProfileForm, StatusMessage
from services.singleflight import SingleFlight

logger = logging.getLogger(__name__)


class ProfileEditor:
    """Dashboard profile form, read-only until ``start_edit``."""

    def __init__(self, identity, session, flights=None):
        self.identity = identity
        self.session = session
        self.flights = flights or SingleFlight()
        self.is_editing = False
        self.form = ProfileForm.from_user(session.user)
        self.message = StatusMessage()

    def take_message(self):
        return self.message.take()

    def start_edit(self):
        self.form = ProfileForm.from_user(self.session.user)
        self.is_editing = True

    def cancel(self):
        self.form = ProfileForm.from_user(self.session.user)
        self.is_editing = False
        self.message.clear()

    def update(self, values):
        if not self.is_editing:
            raise ValidationError("The profile is not being edited")
        self.form.update(values)

    def save(self):
        if not self.is_editing:
            return False
        with self.flights.hold("profile.save") as acquired:
            if not acquired:
                return False
            try:
                payload = self.form.validate()
                self.identity.update_profile(self.session, payload)
            except ClientError as e:
                logger.warning("Error updating profile: %s", e.message)
                self.message.error(e.message, e)
                return False

        self.form = ProfileForm.from_user(self.session.user)
        self.is_editing = False
        self.message.success("Profile updated successfully!")
        return True
