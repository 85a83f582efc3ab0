from jinja2 import Environment, StrictUndefined

env = Environment(trim_blocks=True, lstrip_blocks=True, undefined=StrictUndefined)


def template_parse(template, params):
    t = env.from_string(template)
    o = t.render(params)
    return o.strip()
