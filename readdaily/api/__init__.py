def register_blueprints(app):
    from readdaily.api.auth import bp as auth_bp
    from readdaily.api.users import bp as users_bp
    from readdaily.api.articles import bp as articles_bp
    from readdaily.api.categories import bp as categories_bp
    from readdaily.api.admin import bp as admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(articles_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(admin_bp)
