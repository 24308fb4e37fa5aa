from donatehub.utils.exceptions import InvalidArgumentError

MAX_PAGE_SIZE = 100


def page_args(args, default_size=10):
    """Read zero-based ``page`` and ``size`` from request args."""
    try:
        page = int(args.get("page", 0))
        size = int(args.get("size", default_size))
    except (TypeError, ValueError):
        raise InvalidArgumentError("page and size must be integers")
    return page, size


def paginate_query(query, page, size):
    if page < 0:
        raise InvalidArgumentError("page must be >= 0")
    if size < 1 or size > MAX_PAGE_SIZE:
        raise InvalidArgumentError(f"size must be between 1 and {MAX_PAGE_SIZE}")
    items = query.offset(page * size).limit(size).all()
    total = query.order_by(None).count()
    total_pages = (total + size - 1) // size
    return items, {"total": total, "page": page, "size": size, "total_pages": total_pages}
