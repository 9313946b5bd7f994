from flask import Flask, request, jsonify, Blueprint, current_app
from flask_jwt_extended import create_access_token, get_jwt_identity, jwt_required, JWTManager
from flasgger import Swagger
from flask_cors import CORS
from pydantic import ValidationError as SchemaError
from pydantic import EmailStr, TypeAdapter
from decimal import Decimal, InvalidOperation
import requests
import logging
import threading
import time
import uuid
