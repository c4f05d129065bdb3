pytest_plugins = ["pytester", "asyncsteps.plugin"]
