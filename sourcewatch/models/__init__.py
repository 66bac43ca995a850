# Models package — prefer importing from the specific submodule
# (e.g. sourcewatch.models.traffic).
