from breeze.lib.logger import logger


class Response:

    def __init__(self, code=200, message="", data=None, status=200):
        self.status = status
        self.message = message
        self.data = data if data is not None else {}
        self.code = code

    def to_dict(self):
        try:
            return {
                "code": self.code,
                "message": self.message,
                "data": self.data,
            }, self.status
        except Exception as e:
            logger.opt(exception=True).error(f"Error in Response to_dict: {e}")
            return {"code": 500, "message": "Internal Server Error", "data": {}}, 500
