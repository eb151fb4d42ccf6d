from setuptools import setup

# To use a consistent encoding
from codecs import open
from os import path

here = path.abspath(path.dirname(__file__))

# README as the long description
with open(path.join(here, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

REQUIREMENTS = [i.strip() for i in open(path.join(here, 'requirements.txt')).readlines() if i.strip()]
tests_require = [
    'pytest',
    'mock',
]

setup(name='exitrelay',
      version='1.0.0',
      description='Exitrelay checks addresses against the cached Tor exit relay list',
      long_description=long_description,
      long_description_content_type='text/markdown',
      tests_require=tests_require,
      extras_require={
          'test': tests_require,
      },
      install_requires=REQUIREMENTS,
      include_package_data=True,
      package_dir={'': 'src'},
      packages=[
          'exitrelay',
      ]
)
