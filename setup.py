from setuptools import setup

setup(
    name='gini-cart',
    version='1.0',
    py_modules=[
        'errors',
        'impurity',
        'dataset',
        'partition',
        'split_search',
        'tree',
        'tree_builder',
        'cart_classifier',
        'cart_cli',
    ],
    description='Binary CART decision tree with Gini impurity splits',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    python_requires='>=3.10',
    install_requires=[
        'numpy',
        'pandas',
    ],
    extras_require={
        'test': ['pytest'],
        'experiments': ['scikit-learn'],
    },
    entry_points={
        'console_scripts': ['cart-classify=cart_cli:main'],
    },
)
