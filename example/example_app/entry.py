import os

import falcon

from serve_helpers.config import config
from serve_helpers.encoder import HTTPEncoder
from serve_helpers.templates import (
    HTMLTemplateRenderer, TemplateRepository, set_template_provider)

import serve_helpers.default.logging as default_logging
import serve_helpers.default.falcon as default_falcon


TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), os.pardir, "templates")

USERS = [
    {"id": 1, "name": "ada"},
    {"id": 2, "name": "grace"},
]


class Hello:
    def on_get(self, req, resp):
        HTTPEncoder(resp).encode_text("Hello, World!")


class Users:
    def on_get(self, req, resp):
        callback = req.get_param("callback")
        if callback:
            HTTPEncoder(resp).encode_jsonp(callback, USERS)
        else:
            HTTPEncoder(resp).encode_json(USERS)


class Avatar:
    def on_get(self, req, resp, user_id: int):
        HTTPEncoder(resp).encode_data(bytes([user_id % 256]) * 16)


class Home:
    def on_get(self, req, resp):
        HTMLTemplateRenderer(resp).render("home", {"users": USERS})


def route(app: falcon.App):
    app.add_route("/hello", Hello())
    app.add_route("/users", Users())
    app.add_route("/users/{user_id:int}/avatar", Avatar())
    app.add_route("/", Home())


def create_app(log: bool = True):
    if log:
        default_logging.add_output_stderr()

    config.start_reloader()

    set_template_provider(TemplateRepository(
        directory=config.get("templates.directory", TEMPLATE_DIR),
        compilation=config.get("templates.compilation", "once"),
        util_funcs={"app_name": lambda: "serve-helpers example"}))

    return default_falcon.setup_falcon(custom_routes=[
            route,
            # add application routes here
    ])
