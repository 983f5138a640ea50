from uuid import uuid4
import threading


HEADER = "X-Request-ID"

context = threading.local()  # gevent also monkeypatches this
def get():
    return getattr(context, "request_id", None)
def set(id):
    context.request_id = id


class RequestTracer:
    """
    Falcon middleware to add an id to each request for tracing it in the logs.
    An id supplied by the client in ``X-Request-ID`` is kept,
    and the id is echoed back in the response.
    """

    def process_request(self, req, resp):
        rid = req.get_header(HEADER) or str(uuid4())
        req.context.request_id = rid
        set(rid)

    def process_response(self, req, resp, res, req_succeeded):
        rid = getattr(req.context, "request_id", None)
        if rid is not None:
            resp.set_header(HEADER, rid)
        set(None)
