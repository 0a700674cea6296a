"""
Test fixtures shared across all TagLint tests.
"""

import pytest

from taglint.core.rule_catalog import default_rule_catalog
from taglint.core.tag_registry import TagRegistry, default_tag_registry
from taglint.models.tag_models import CompoundTagDefinition, TagDefinition


@pytest.fixture
def leaky_dao_code():
    """DAO with unclosed JDBC resources, SQL concatenation and a query per loop iteration."""
    return '''
package com.example.dao;

import java.sql.Connection;
import java.sql.PreparedStatement;
import java.sql.ResultSet;

@Repository
public class UserDao {
    private DataSource dataSource;

    public User findUser(String id) throws SQLException {
        Connection conn = dataSource.getConnection();
        PreparedStatement ps = conn.prepareStatement("SELECT * FROM users WHERE id = " + id);
        ResultSet rs = ps.executeQuery();
        if (rs.next()) {
            return new User(rs.getString("name"));
        }
        return null;
    }

    public void touchAll(List<String> ids) {
        for (String id : ids) {
            try {
                Connection c = dataSource.getConnection();
                c.createStatement().executeUpdate("UPDATE users SET seen = 1 WHERE id = " + id);
            } catch (Exception e) {
            }
        }
    }
}
'''


@pytest.fixture
def safe_service_code():
    """Service that closes its resources with try-with-resources."""
    return '''
package com.example.service;

@Service
public class UserService {
    private final DataSource dataSource;

    public UserService(DataSource dataSource) {
        this.dataSource = dataSource;
    }

    public String load(String id) {
        String sql = "SELECT name FROM users WHERE id = ?";
        try (Connection conn = dataSource.getConnection();
             PreparedStatement ps = conn.prepareStatement(sql)) {
            ps.setString(1, id);
            return read(ps.executeQuery());
        } catch (SQLException e) {
            throw new IllegalStateException("lookup failed", e);
        }
    }
}
'''


@pytest.fixture
def finally_close_code():
    """Connection released in a finally block."""
    return '''
public class LegacyDao {
    public void run() throws SQLException {
        Connection conn = null;
        try {
            conn = pool.getConnection();
            conn.commit();
        } finally {
            if (conn != null) {
                conn.close();
            }
        }
    }
}
'''


@pytest.fixture
def registry():
    """Registry built from the packaged tag definitions."""
    return default_tag_registry()


@pytest.fixture
def rules():
    """Packaged rule catalog."""
    return default_rule_catalog()


@pytest.fixture
def make_registry():
    """Build a registry from plain dicts: make_registry({"TAG": detection}, {"COMPOUND": expr})."""

    def _make(tags, compound_tags=None):
        definitions = [
            TagDefinition.model_validate({"name": name, "detection": detection})
            for name, detection in tags.items()
        ]
        compounds = [
            CompoundTagDefinition(name=name, expression=expression)
            for name, expression in (compound_tags or {}).items()
        ]
        return TagRegistry(definitions, compounds)

    return _make
