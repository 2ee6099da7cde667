from protean.utils.globals import current_domain

PAGE_SIZE = 200


def scan(element_cls, order_by="id", page_size=PAGE_SIZE, **criteria):
    """Yield every record of ``element_cls`` matching ``criteria``.

    Results are fetched page by page in a stable order, so large collections
    are never loaded at once and the generator can be re-created at will.
    """
    dao = current_domain.repository_for(element_cls)._dao
    offset = 0
    while True:
        queryset = dao.query.filter(**criteria) if criteria else dao.query
        items = queryset.order_by(order_by).offset(offset).limit(page_size).all().items
        yield from items
        if len(items) < page_size:
            return
        offset += page_size
