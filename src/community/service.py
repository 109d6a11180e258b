from beanbind import post_construct, pre_destroy, scope, service

from .dao import AlphaDao


@service
@scope("prototype")
class AlphaService:
    """Prints each lifecycle step so construction, init and destroy ordering is visible."""

    def __init__(self, alpha_dao: AlphaDao) -> None:
        self.alpha_dao = alpha_dao
        print("instance AlphaService")  # noqa: T201

    @post_construct
    def init(self) -> None:
        print("init AlphaService")  # noqa: T201

    # never runs while the service is prototype-scoped
    @pre_destroy
    def destroy(self) -> None:
        print("destroy AlphaService")  # noqa: T201

    def find(self) -> str:
        return self.alpha_dao.select()
