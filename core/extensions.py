from core.imports import Swagger, JWTManager, CORS
from core.gateway import ApiGateway
from core.session import IdentityProvider
from core.state import ClientStateStore

jwt = JWTManager()
swagger = Swagger()
cors = CORS()
gateway = ApiGateway()
identity = IdentityProvider(gateway)
store = ClientStateStore()
