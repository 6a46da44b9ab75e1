# -*- coding: utf-8 -*-
from setuptools import setup

packages = \
['fixie_agents']

package_data = \
{'': ['*']}

install_requires = \
['PyYAML>=6.0,<7.0',
 'dataclasses-json>=0.5.7,<1.0.0',
 'pydantic>=1.10.0,<3.0.0',
 'requests>=2.28.1,<3.0.0']

extras_require = \
{'test': ['pytest>=7.2.0,<9.0.0',
          'pytest-mock>=3.10.0,<4.0.0',
          'requests-mock>=1.10.0,<2.0.0']}

setup_kwargs = {
    'name': 'fixie_agents',
    'version': '0.1.0',
    'description': 'Library for building Agents for the Fixie platform. See: https://fixie.ai',
    'long_description': 'None',
    'author': 'Fixie.ai Team',
    'author_email': 'founders@fixie.ai',
    'maintainer': 'None',
    'maintainer_email': 'None',
    'url': 'None',
    'packages': packages,
    'package_data': package_data,
    'install_requires': install_requires,
    'extras_require': extras_require,
    'python_requires': '>=3.9,<4.0',
}


setup(**setup_kwargs)
