"""
starcup
~~~~~~~

派对实时点歌投票服务：DJ 开轮、观众扫码投票、DJ 结束并公布胜出曲目。
"""

__version__ = "0.1.0"
