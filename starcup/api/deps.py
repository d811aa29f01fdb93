from fastapi import Request

from starcup.services.vote_system import VoteSystem


def get_vote_system(request: Request) -> VoteSystem:
    return request.app.state.vote_system
