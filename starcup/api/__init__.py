"""
starcup.api
~~~~~~~~~~~

HTTP 与 WebSocket 接口层。
"""
