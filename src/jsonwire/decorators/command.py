# jsonwire/decorators/command.py


def for_command(_func=None, *, uses_element=False, creates_context=False):
    """
    Mark how a Session method behaves when called through a Command chain.

    ``uses_element`` methods take an optional element as their first
    argument and run once per element of the current context.
    ``creates_context`` methods replace the context with their result.

    Usable bare (``@for_command``) or with keyword arguments.
    """
    def decorator(fn):
        fn.uses_element = uses_element
        fn.creates_context = creates_context
        return fn

    if _func is not None:
        return decorator(_func)
    return decorator
