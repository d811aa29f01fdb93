"""
starcup.services
~~~~~~~~~~~~~~~~

领域服务：曲库、选曲、房间仓库、轮次控制与广播。
"""
